"""
Tests for BackgroundTasks.

Tests cover:
- Result and error delivery
- Superseding a task under the same key
- Cancel and cancel_all (navigation away)
- Custom dispatchers
"""

import threading

import pytest

from SB_Libs.TaskLib.decode_tasks import BackgroundTasks


@pytest.fixture
def tasks():
    runner = BackgroundTasks(max_workers=2)
    yield runner
    runner.shutdown()


class TestBackgroundTasks:
    """Tests for BackgroundTasks class."""

    def test_delivers_result(self, tasks):
        received = []
        done = threading.Event()

        def on_result(value):
            received.append(value)
            done.set()

        tasks.submit("job", lambda x: x * 2, 21, on_result=on_result)

        assert done.wait(5)
        assert received == [42]

    def test_delivers_error(self, tasks):
        errors = []
        done = threading.Event()

        def fail():
            raise ValueError("boom")

        def on_error(error):
            errors.append(error)
            done.set()

        tasks.submit("job", fail, on_error=on_error)

        assert done.wait(5)
        assert isinstance(errors[0], ValueError)

    def test_request_ids_increase(self, tasks):
        first = tasks.submit("a", lambda: None)
        second = tasks.submit("b", lambda: None)

        assert second.request_id > first.request_id

    def test_superseded_result_is_discarded(self, tasks):
        """A slow first request finishing after the second must not deliver."""
        release_first = threading.Event()
        second_done = threading.Event()
        results = []

        def slow(value):
            release_first.wait(5)
            return value

        first = tasks.submit("decode", slow, "image-a", on_result=results.append)
        tasks.submit(
            "decode",
            lambda value: value,
            "image-b",
            on_result=lambda value: (results.append(value), second_done.set()),
        )

        assert second_done.wait(5)
        release_first.set()
        first.future.result(timeout=5)

        assert first.cancelled
        assert results == ["image-b"]

    def test_cancel_prevents_delivery(self, tasks):
        release = threading.Event()
        results = []

        handle = tasks.submit("decode", lambda: release.wait(5) and "value", on_result=results.append)
        assert tasks.cancel("decode")
        release.set()
        if not handle.future.cancelled():
            handle.future.result(timeout=5)

        assert handle.cancelled
        assert results == []
        assert tasks.cancel("decode") is False

    def test_cancel_unknown_key(self, tasks):
        assert tasks.cancel("nothing") is False

    def test_cancel_all(self, tasks):
        release = threading.Event()
        results = []

        handles = [
            tasks.submit(key, lambda: release.wait(5), on_result=results.append)
            for key in ("decode", "save")
        ]
        tasks.cancel_all()
        release.set()

        assert all(handle.cancelled for handle in handles)
        assert results == []

    def test_uses_dispatcher(self):
        dispatched = []
        done = threading.Event()

        def dispatch(callback):
            dispatched.append(callback)
            callback()

        runner = BackgroundTasks(dispatch=dispatch)
        try:
            runner.submit("job", lambda: "ok", on_result=lambda value: done.set())
            assert done.wait(5)
        finally:
            runner.shutdown()

        assert len(dispatched) == 1

    def test_finished_task_is_forgotten(self, tasks):
        done = threading.Event()

        tasks.submit("job", lambda: 1, on_result=lambda value: done.set())

        assert done.wait(5)
        assert tasks.cancel("job") is False
