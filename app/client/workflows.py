"""
Client-side workflow queries and mutations.

Queries read through the session's QueryCache. Mutations return a ``Result``;
the ``after_*`` continuations turn that result into user notifications and
cache invalidation, so callers decide when (and whether) to run them.
"""
import logging
from typing import Any, Callable, Dict

from app.client.api_client import ApiClient
from app.client.params import SearchParams, page_size_of
from app.client.query_cache import QueryCache, QueryKey, query_key
from app.client.results import Result, capture

logger = logging.getLogger(__name__)

Notify = Callable[[str, str], None]

GET_MANY_KEY: QueryKey = ("workflows", "get_many")
GET_ONE_KEY: QueryKey = ("workflows", "get_one")


def log_notify(level: str, message: str) -> None:
    """Default notifier: route toasts to the log."""
    logger.log(logging.ERROR if level == "error" else logging.INFO, message)


def get_many_key(params: SearchParams) -> QueryKey:
    return query_key(*GET_MANY_KEY, params={
        "page": params.page,
        "page_size": page_size_of(params),
        "search": params.search,
    })


def get_one_key(workflow_id: str) -> QueryKey:
    return query_key(*GET_ONE_KEY, params={"id": workflow_id})


def fetch_workflows(api: ApiClient, cache: QueryCache, params: SearchParams) -> Dict[str, Any]:
    """Return the page of workflows described by ``params``."""
    return cache.fetch(
        get_many_key(params),
        lambda: api.list_workflows(page=params.page, page_size=page_size_of(params), search=params.search),
    )


def fetch_workflow(api: ApiClient, cache: QueryCache, workflow_id: str) -> Dict[str, Any]:
    return cache.fetch(get_one_key(workflow_id), lambda: api.get_workflow(workflow_id))


def prefetch_workflows(api: ApiClient, cache: QueryCache, params: SearchParams) -> Dict[str, Any]:
    """Warm a (server-side) cache so its ``dehydrate()`` output carries the first page."""
    return fetch_workflows(api, cache, params)


def create_workflow(api: ApiClient) -> Result:
    return capture(api.create_workflow)


def remove_workflow(api: ApiClient, workflow_id: str) -> Result:
    return capture(api.remove_workflow, workflow_id)


def rename_workflow(api: ApiClient, workflow_id: str, name: str) -> Result:
    return capture(api.rename_workflow, workflow_id, name)


def execute_workflow(api: ApiClient, workflow_id: str) -> Result:
    return capture(api.execute_workflow, workflow_id)


def after_create(result: Result, cache: QueryCache, notify: Notify = log_notify) -> Result:
    if result.ok:
        notify("success", f'Workflow "{result.value["name"]}" created')
        cache.invalidate(GET_MANY_KEY)
    else:
        notify("error", f"Failed to create workflow: {result.message}")
    return result


def after_remove(result: Result, cache: QueryCache, notify: Notify = log_notify) -> Result:
    if result.ok:
        notify("success", f'Workflow "{result.value["name"]}" removed')
        cache.invalidate(GET_MANY_KEY)
        cache.remove(get_one_key(result.value["id"]))
    else:
        notify("error", f"Failed to remove workflow: {result.message}")
    return result


def after_rename(result: Result, cache: QueryCache, notify: Notify = log_notify) -> Result:
    if result.ok:
        notify("success", f'Workflow renamed to "{result.value["name"]}"')
        cache.invalidate(GET_MANY_KEY)
        cache.invalidate(get_one_key(result.value["id"]))
    else:
        notify("error", f"Failed to rename workflow: {result.message}")
    return result


def after_execute(result: Result, notify: Notify = log_notify) -> Result:
    if result.ok:
        notify("success", f'Workflow "{result.value["workflow"]["name"]}" queued (run {result.value["job_run_id"]})')
    else:
        notify("error", f"Failed to execute workflow: {result.message}")
    return result
