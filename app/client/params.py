"""
URL-backed search parameters for list views.

``SearchParams`` is the value that lives in the page URL (``?search=foo&page=2``);
``ParamsStore`` holds the current value for one client session and tells
subscribers when it changes.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace as dc_replace
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional
from urllib.parse import parse_qsl, urlencode

from app.core.pagination import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, clamp_page_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchParams:
    """Search text, page number, and any other query fields (kept opaque in ``extra``)."""
    search: str = ""
    page: int = DEFAULT_PAGE
    extra: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SearchParams):
            return NotImplemented
        return (self.search, self.page, dict(self.extra)) == (other.search, other.page, dict(other.extra))

    def __hash__(self) -> int:
        return hash((self.search, self.page, tuple(sorted(self.extra.items()))))

    def replace(self, **changes) -> "SearchParams":
        return dc_replace(self, **changes)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.extra.get(key, default)


def _parse_positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value >= 1 else default


def parse_query_string(query_string: str, defaults: Optional[SearchParams] = None) -> SearchParams:
    """
    Decode ``search=...&page=...`` into SearchParams.

    Missing or malformed values fall back to ``defaults``. Keys other than
    ``search``/``page`` land in ``extra`` untouched (last occurrence wins).
    """
    defaults = defaults or SearchParams()
    pairs = dict(parse_qsl(query_string.lstrip("?"), keep_blank_values=True))

    search = pairs.pop("search", defaults.search)
    page = _parse_positive_int(pairs.pop("page", None), defaults.page)
    extra = {**defaults.extra, **pairs}
    return SearchParams(search=search, page=page, extra=extra)


def to_query_string(params: SearchParams, defaults: Optional[SearchParams] = None) -> str:
    """Encode SearchParams, omitting values equal to their defaults."""
    defaults = defaults or SearchParams()
    items: List[tuple] = []
    if params.search != defaults.search:
        items.append(("search", params.search))
    if params.page != defaults.page:
        items.append(("page", str(params.page)))
    for key in sorted(params.extra):
        if defaults.extra.get(key) != params.extra[key]:
            items.append((key, params.extra[key]))
    return urlencode(items)


WORKFLOWS_DEFAULTS = SearchParams(extra={"page_size": str(DEFAULT_PAGE_SIZE)})


def workflows_params_loader(query_string: str = "") -> SearchParams:
    """Load workflow-list params with ``page_size`` clamped to the allowed range."""
    params = parse_query_string(query_string, WORKFLOWS_DEFAULTS)
    page_size = clamp_page_size(_parse_positive_int(params.get("page_size"), DEFAULT_PAGE_SIZE))
    return params.replace(extra={**params.extra, "page_size": str(page_size)})


def page_size_of(params: SearchParams) -> int:
    return clamp_page_size(_parse_positive_int(params.get("page_size"), DEFAULT_PAGE_SIZE))


Listener = Callable[[SearchParams], None]


class ParamsStore:
    """
    Holds the current SearchParams for one session, standing in for the URL.

    ``set`` replaces the whole value; listeners fire only when it actually
    changed, so committing an identical value twice notifies once.
    """

    def __init__(self, initial: Optional[SearchParams] = None, defaults: Optional[SearchParams] = None):
        self._defaults = defaults or SearchParams()
        self._value = initial or self._defaults
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    @classmethod
    def from_url(cls, query_string: str, loader: Callable[[str], SearchParams] = workflows_params_loader,
                 defaults: SearchParams = WORKFLOWS_DEFAULTS) -> "ParamsStore":
        return cls(loader(query_string), defaults=defaults)

    @property
    def value(self) -> SearchParams:
        return self._value

    @property
    def url(self) -> str:
        query = to_query_string(self._value, self._defaults)
        return f"?{query}" if query else ""

    def set(self, new_value: SearchParams) -> bool:
        """Replace the current value. Returns True when listeners were notified."""
        with self._lock:
            if new_value == self._value:
                return False
            self._value = new_value
            listeners = list(self._listeners)

        logger.debug("Search params changed to %s", to_query_string(new_value, self._defaults) or "(defaults)")
        for listener in listeners:
            listener(new_value)
        return True

    def navigate(self, query_string: str, loader: Callable[[str], SearchParams] = workflows_params_loader) -> bool:
        """Replace the value from a URL, as back/forward navigation would."""
        return self.set(loader(query_string))

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
