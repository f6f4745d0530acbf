"""
Client-side workflow operations against the real API (via TestClient).

Also drives the full loop: typing in the search box -> debounce -> params
store -> cached list query.
"""
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from app.client import workflows
from app.client.api_client import ApiClient, ApiError
from app.client.params import ParamsStore
from app.client.query_cache import QueryCache
from app.client.results import Failure, Success, capture
from app.client.search import SearchParamsController
from app.domain.workflows.models import Workflow
from tests.utils.fakes import FakeClock, FakeScheduler


@pytest.fixture
def api_for(client):
    def _api(user):
        return ApiClient(http=client, token=user["token"])

    return _api


class Toasts:
    def __init__(self):
        self.messages = []

    def __call__(self, level, message):
        self.messages.append((level, message))


def test_capture_wraps_values_and_errors():
    assert capture(lambda: 3) == Success(3)
    result = capture(lambda: 1 / 0)
    assert isinstance(result, Failure)
    assert not result.ok
    assert "division" in result.message
    assert result.map(lambda v: v + 1) is result
    assert Success(2).map(lambda v: v * 5) == Success(10)


def test_api_error_carries_status_and_detail(api_for, user_factory):
    api = api_for(user_factory())
    with pytest.raises(ApiError) as excinfo:
        api.get_workflow("missing")
    assert excinfo.value.status_code == 404
    assert "not found" in excinfo.value.detail


def test_login_stores_token(client, user_factory):
    user = user_factory()
    api = ApiClient(http=client)

    profile = api.login(user["email"], user["password"])

    assert profile["email"] == user["email"]
    assert api.session()["authenticated"] is True
    api.logout()
    assert api.token is None


def test_create_success_invalidates_list_and_notifies(api_for, user_factory):
    api = api_for(user_factory(premium=True))
    cache = QueryCache(clock=FakeClock())
    store = ParamsStore.from_url("")
    toasts = Toasts()

    assert workflows.fetch_workflows(api, cache, store.value)["total"] == 0
    result = workflows.after_create(workflows.create_workflow(api), cache, toasts)

    assert result.ok
    assert toasts.messages == [("success", f'Workflow "{result.value["name"]}" created')]
    assert workflows.fetch_workflows(api, cache, store.value)["total"] == 1


def test_create_failure_keeps_cache_and_reports_error(api_for, user_factory):
    api = api_for(user_factory(premium=False))
    cache = QueryCache(clock=FakeClock())
    key = ("workflows", "get_many", "sentinel")
    cache.set(key, "cached")
    toasts = Toasts()

    result = workflows.after_create(workflows.create_workflow(api), cache, toasts)

    assert isinstance(result, Failure)
    assert toasts.messages == [("error", "Failed to create workflow: 403: Premium subscription required")]
    assert not cache.is_stale(key)


def test_rename_invalidates_list_and_item(api_for, user_factory, db_session):
    user = user_factory()
    db_session.add(Workflow(id="wf-1", name="before", user_id=user["id"]))
    db_session.commit()
    api = api_for(user)
    cache = QueryCache(clock=FakeClock())
    store = ParamsStore.from_url("")

    assert workflows.fetch_workflow(api, cache, "wf-1")["name"] == "before"
    workflows.fetch_workflows(api, cache, store.value)
    workflows.after_rename(workflows.rename_workflow(api, "wf-1", "after"), cache)

    assert cache.is_stale(workflows.get_one_key("wf-1"))
    assert cache.is_stale(workflows.get_many_key(store.value))
    assert workflows.fetch_workflow(api, cache, "wf-1")["name"] == "after"


def test_remove_continuation_uses_removed_record():
    cache = QueryCache(clock=FakeClock())
    cache.set(workflows.get_one_key("wf-9"), {"id": "wf-9"})
    toasts = Toasts()

    workflows.after_remove(Success({"id": "wf-9", "name": "gone"}), cache, toasts)

    assert toasts.messages == [("success", 'Workflow "gone" removed')]
    assert workflows.get_one_key("wf-9") not in cache


def test_cached_list_is_reused_until_stale():
    api = MagicMock()
    api.list_workflows.return_value = {"items": [], "total": 0}
    clock = FakeClock()
    cache = QueryCache(stale_time=30, clock=clock)
    params = ParamsStore.from_url("search=x&page_size=10").value

    workflows.fetch_workflows(api, cache, params)
    workflows.fetch_workflows(api, cache, params)
    clock.advance(31)
    workflows.fetch_workflows(api, cache, params)

    assert api.list_workflows.call_count == 2
    api.list_workflows.assert_called_with(page=1, page_size=10, search="x")


def test_server_prefetch_hydrates_client_cache():
    api = MagicMock()
    api.list_workflows.return_value = {"items": [{"id": "w"}], "total": 1}
    params = ParamsStore.from_url("page=2").value

    server_cache = QueryCache(clock=FakeClock())
    workflows.prefetch_workflows(api, server_cache, params)
    client_cache = QueryCache(clock=FakeClock())
    client_cache.hydrate(server_cache.dehydrate())

    assert workflows.fetch_workflows(api, client_cache, params)["total"] == 1
    assert api.list_workflows.call_count == 1


def test_typing_in_search_box_refreshes_list(api_for, user_factory, db_session):
    user = user_factory()
    base = datetime(2025, 3, 1)
    for index, name in enumerate(["alpha-report", "beta-report", "gamma", "delta", "epsilon", "zeta"]):
        db_session.add(Workflow(name=name, user_id=user["id"], created_at=base + timedelta(minutes=index)))
    db_session.commit()

    api = api_for(user)
    cache = QueryCache(clock=FakeClock())
    store = ParamsStore.from_url("page=2")
    scheduler = FakeScheduler()
    controller = SearchParamsController(store.value, store.set, scheduler, debounce_ms=500)
    pages = []
    store.subscribe(controller.sync)
    store.subscribe(lambda params: pages.append(workflows.fetch_workflows(api, cache, params)))

    assert workflows.fetch_workflows(api, cache, store.value)["items"][0]["name"] == "alpha-report"

    for text in ("r", "re", "rep"):
        controller.on_user_input(text)
    scheduler.advance(0.5)

    assert store.url == "?search=rep"
    assert len(pages) == 1
    assert [w["name"] for w in pages[0]["items"]] == ["beta-report", "alpha-report"]

    controller.on_user_input("")

    assert store.url == ""
    assert pages[-1]["total"] == 6
    controller.close()
