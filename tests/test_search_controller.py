"""
Tests for the debounced search controller.

A fake scheduler drives virtual time so debounce windows are exact; the
asyncio and threading schedulers get one smoke test each.
"""
import asyncio
import threading

import pytest

from app.client.params import ParamsStore, SearchParams
from app.client.search import LoopScheduler, SearchParamsController, ThreadTimerScheduler
from tests.utils.fakes import FakeScheduler

DEBOUNCE = 0.5


class Recorder:
    """Setter that records commits and optionally forwards them to a store."""

    def __init__(self, store=None):
        self.calls = []
        self.store = store

    def __call__(self, params):
        self.calls.append(params)
        if self.store is not None:
            self.store.set(params)


def make_controller(initial: SearchParams, connect_store: bool = True):
    scheduler = FakeScheduler()
    store = ParamsStore(initial)
    apply = Recorder(store if connect_store else None)
    controller = SearchParamsController(initial, apply, scheduler, debounce_ms=500)
    store.subscribe(controller.sync)
    return controller, store, apply, scheduler


def test_rapid_typing_commits_once_with_last_value():
    controller, store, apply, scheduler = make_controller(SearchParams())

    for text in ("h", "he", "hel"):
        controller.on_user_input(text)
        scheduler.advance(0.2)

    assert apply.calls == []
    scheduler.advance(DEBOUNCE)

    assert len(apply.calls) == 1
    assert apply.calls[0].search == "hel"
    assert store.value.search == "hel"
    assert controller.get_display_value() == "hel"


def test_display_value_updates_before_any_commit():
    controller, _, apply, _ = make_controller(SearchParams())

    controller.on_user_input("abc")

    assert controller.get_display_value() == "abc"
    assert apply.calls == []


def test_typing_that_never_pauses_never_commits():
    controller, _, apply, scheduler = make_controller(SearchParams())

    text = ""
    for ch in "continuous":
        text += ch
        controller.on_user_input(text)
        scheduler.advance(0.49)

    assert apply.calls == []
    assert len(scheduler.live) == 1


def test_clearing_commits_immediately():
    controller, store, apply, scheduler = make_controller(SearchParams(search="abc", page=4))

    controller.on_user_input("")

    assert len(apply.calls) == 1
    assert apply.calls[0].search == ""
    assert apply.calls[0].page == 1
    assert scheduler.live == []
    assert store.value == SearchParams(search="", page=1)


def test_clearing_cancels_pending_commit():
    controller, _, apply, scheduler = make_controller(SearchParams(search="abc"))

    controller.on_user_input("abcd")
    controller.on_user_input("")
    scheduler.advance(DEBOUNCE * 2)

    assert [p.search for p in apply.calls] == [""]


def test_clearing_when_already_empty_does_not_commit():
    controller, _, apply, scheduler = make_controller(SearchParams(search="", page=2))

    controller.on_user_input("")
    scheduler.advance(DEBOUNCE)

    assert apply.calls == []


def test_commit_resets_page_and_keeps_extra_fields():
    initial = SearchParams(search="x", page=5, extra={"page_size": "20"})
    controller, _, apply, scheduler = make_controller(initial)

    controller.on_user_input("xy")
    scheduler.advance(DEBOUNCE)

    assert apply.calls == [SearchParams(search="xy", page=1, extra={"page_size": "20"})]


def test_start_on_page_three_and_type():
    controller, _, apply, scheduler = make_controller(SearchParams(search="", page=3))

    controller.on_user_input("a")
    controller.on_user_input("ab")
    scheduler.advance(DEBOUNCE)

    assert apply.calls == [SearchParams(search="ab", page=1)]


def test_timer_skips_commit_when_store_already_matches():
    controller, store, apply, scheduler = make_controller(SearchParams())

    controller.on_user_input("foo")
    store.set(SearchParams(search="foo", page=2))
    scheduler.advance(DEBOUNCE)

    assert apply.calls == []
    assert store.value.page == 2


def test_returning_to_committed_value_skips_commit():
    controller, _, apply, scheduler = make_controller(SearchParams(search="abc"), connect_store=False)

    controller.on_user_input("abcd")
    controller.on_user_input("abc")
    scheduler.advance(DEBOUNCE)

    assert apply.calls == []


def test_external_change_updates_display_without_delay():
    controller, store, apply, scheduler = make_controller(SearchParams())

    controller.on_user_input("foo")
    store.navigate("search=bar")

    assert controller.get_display_value() == "bar"
    scheduler.advance(DEBOUNCE)
    assert apply.calls == []
    assert store.value.search == "bar"


def test_page_change_keeps_typing_in_progress():
    controller, store, apply, scheduler = make_controller(SearchParams(search="a", page=1))

    controller.on_user_input("ab")
    scheduler.advance(0.3)
    store.set(store.value.replace(page=2))

    assert controller.get_display_value() == "ab"
    assert controller.has_pending_commit
    # The pending timer keeps its original deadline.
    scheduler.advance(0.2)
    assert [p.search for p in apply.calls] == ["ab"]
    assert apply.calls[0].page == 1
    assert not controller.has_pending_commit


def test_same_value_committed_twice_notifies_once():
    controller, store, apply, scheduler = make_controller(SearchParams())
    notified = []
    store.subscribe(notified.append)

    controller.on_user_input("report")
    scheduler.advance(DEBOUNCE)
    controller.on_user_input("report")
    scheduler.advance(DEBOUNCE)

    assert len(apply.calls) == 1
    assert notified == [SearchParams(search="report", page=1)]
    assert store.set(SearchParams(search="report", page=1)) is False


def test_close_cancels_pending_timer():
    controller, _, apply, scheduler = make_controller(SearchParams())

    controller.on_user_input("abc")
    assert controller.has_pending_commit
    controller.close()
    assert not controller.has_pending_commit
    scheduler.advance(DEBOUNCE)

    assert apply.calls == []
    assert scheduler.live == []


def test_superseded_timer_callback_is_inert_even_if_it_runs():
    controller, _, apply, scheduler = make_controller(SearchParams())

    controller.on_user_input("a")
    stale = scheduler.live[0]
    controller.on_user_input("ab")
    stale.callback()

    assert apply.calls == []
    scheduler.advance(DEBOUNCE)
    assert [p.search for p in apply.calls] == ["ab"]


def test_context_manager_closes_controller():
    scheduler = FakeScheduler()
    apply = Recorder()
    with SearchParamsController(SearchParams(), apply, scheduler) as controller:
        controller.on_user_input("q")
    scheduler.advance(DEBOUNCE)

    assert apply.calls == []
    controller.on_user_input("ignored")
    assert controller.get_display_value() == "q"


def test_setter_errors_propagate():
    def failing_apply(params):
        raise RuntimeError("navigation rejected")

    controller = SearchParamsController(SearchParams(search="abc"), failing_apply, FakeScheduler())

    with pytest.raises(RuntimeError, match="navigation rejected"):
        controller.on_user_input("")


def test_loop_scheduler_commits_after_quiet_period():
    async def scenario():
        commits = []
        controller = SearchParamsController(SearchParams(), commits.append, LoopScheduler(), debounce_ms=20)
        controller.on_user_input("w")
        controller.on_user_input("wo")
        await asyncio.sleep(0.01)
        assert commits == []
        await asyncio.sleep(0.05)
        return commits

    commits = asyncio.run(scenario())
    assert [p.search for p in commits] == ["wo"]


def test_thread_timer_scheduler_commits_from_timer_thread():
    committed = threading.Event()
    commits = []

    def apply(params):
        commits.append(params)
        committed.set()

    scheduler = ThreadTimerScheduler()
    controller = SearchParamsController(SearchParams(), apply, scheduler, debounce_ms=20)
    with scheduler.lock:
        controller.on_user_input("flow")

    assert committed.wait(timeout=2)
    assert [p.search for p in commits] == ["flow"]
