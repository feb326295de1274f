"""
Tests for the sticky notification service.

Tests cover:
- START with and without an image, idempotent repeats
- Discarding stale decodes when the image changes
- Decode failures
- STOP, PLAY and PAUSE
- Periodic refresh and the audio probe
- ServiceConfig parsing
"""

import threading

import pytest

import SB_Libs.NotifyLib.notification_service as notification_service
from SB_Libs.NotifyLib.notification_service import (
    RefreshTimer,
    ServiceConfig,
    StickyNotificationService,
)


@pytest.fixture
def make_service(recording_sink, cache_dir):
    services = []

    def factory(**kwargs):
        kwargs.setdefault("clock", lambda: 1000.0)
        service = StickyNotificationService(recording_sink, cache_dir, **kwargs)
        services.append(service)
        return service

    yield factory
    for service in services:
        service.shutdown()


@pytest.fixture
def decode_calls(monkeypatch):
    """Count calls to decode_image made by the service."""
    calls = []
    real_decode = notification_service.decode_image

    def counting_decode(locator):
        calls.append(locator)
        return real_decode(locator)

    monkeypatch.setattr(notification_service, "decode_image", counting_decode)
    return calls


def has_image(locator):
    return lambda sink: sink.last is not None and sink.last.image_locator == locator


class TestStart:
    """Tests for the START command."""

    def test_start_without_image(self, make_service, recording_sink):
        service = make_service()

        service.start(None)

        content = recording_sink.last
        assert service.running
        assert content.large_icon is None
        assert content.image_locator is None
        assert content.playing is True
        assert content.title.endswith("Playing")

    def test_content_is_high_priority_and_future_dated(self, make_service, recording_sink):
        service = make_service()

        service.start(None)

        content = recording_sink.last
        assert content.when_ms == 1000 * 1000 + 100000000
        assert content.priority == "max"
        assert content.category == "call"
        assert content.ongoing is True
        assert content.silent is True

    def test_start_with_image_publishes_thumbnail(self, make_service, recording_sink, make_image_file):
        service = make_service()
        locator = make_image_file("photo.png", size=(800, 600))

        service.start(locator)

        assert recording_sink.wait_for(has_image(locator))
        content = recording_sink.last
        assert content.large_icon.size == (64, 48)
        assert content.small_icon_id is not None
        assert service.icons.get(content.small_icon_id).exists()

    def test_repeated_start_does_not_decode_again(self, make_service, recording_sink, make_image_file, decode_calls):
        service = make_service()
        locator = make_image_file("photo.png")

        service.start(locator)
        assert recording_sink.wait_for(has_image(locator))
        published = len(recording_sink.published)

        service.start(locator)

        assert len(recording_sink.published) == published + 1
        assert decode_calls == [locator]

    def test_start_with_new_image_decodes_it(self, make_service, recording_sink, make_image_file):
        service = make_service()
        first = make_image_file("first.png")
        second = make_image_file("second.png", size=(100, 300))

        service.start(first)
        assert recording_sink.wait_for(has_image(first))
        service.start(second)

        assert recording_sink.wait_for(has_image(second))
        assert recording_sink.last.large_icon.size == (21, 64)

    def test_start_none_clears_image(self, make_service, recording_sink, make_image_file):
        service = make_service()
        locator = make_image_file("photo.png")
        service.start(locator)
        assert recording_sink.wait_for(has_image(locator))

        service.start(None)

        assert recording_sink.last.large_icon is None
        assert service.thumbnail is None

    def test_stale_decode_is_discarded(self, make_service, recording_sink, make_image_file, monkeypatch):
        first = make_image_file("first.png")
        second = make_image_file("second.png")
        release_first = threading.Event()
        real_decode = notification_service.decode_image

        def gated_decode(locator):
            if locator == first:
                release_first.wait(5)
            return real_decode(locator)

        monkeypatch.setattr(notification_service, "decode_image", gated_decode)
        service = make_service()

        service.start(first)
        service.start(second)
        release_first.set()

        assert recording_sink.wait_for(has_image(second))
        assert all(content.image_locator != first for content in recording_sink.published)

    def test_decode_failure_still_shows_notification(self, make_service, recording_sink, tmp_path):
        service = make_service()

        service.start(str(tmp_path / "missing.png"))

        assert recording_sink.wait_for(lambda sink: len(sink.published) >= 1)
        assert recording_sink.last.large_icon is None
        assert service.running

    def test_decode_failure_drops_previous_icon(self, make_service, recording_sink, make_image_file, tmp_path):
        service = make_service()
        first = make_image_file("a.png")
        service.start(first)
        assert recording_sink.wait_for(has_image(first))
        assert recording_sink.last.small_icon_id is not None

        service.start(str(tmp_path / "missing.png"))

        assert recording_sink.wait_for(lambda sink: sink.last.large_icon is None)
        assert recording_sink.last.small_icon_id is None
        assert service.icons.current_icon_id is None


class TestStopAndPlayback:
    """Tests for STOP, PLAY and PAUSE."""

    def test_stop_withdraws(self, make_service, recording_sink):
        service = make_service()
        service.start(None)

        service.stop()

        assert recording_sink.withdrawn == 1
        assert not service.running
        assert service.image_locator is None

    def test_refresh_after_stop_is_ignored(self, make_service, recording_sink):
        service = make_service()
        service.start(None)
        service.stop()
        published = len(recording_sink.published)

        service.refresh()

        assert len(recording_sink.published) == published

    def test_pause_and_play(self, make_service, recording_sink):
        service = make_service()
        service.start(None)

        service.pause()
        assert recording_sink.last.playing is False
        assert recording_sink.last.title.endswith("Paused")

        service.play()
        assert recording_sink.last.playing is True

        service.toggle_playback()
        assert recording_sink.last.playing is False

    def test_playback_ignored_when_stopped(self, make_service, recording_sink):
        service = make_service()

        service.play()

        assert recording_sink.published == []


class TestRefresh:
    """Tests for periodic refresh."""

    def test_refresh_reports_device_audio(self, make_service, recording_sink):
        service = make_service(audio_probe=lambda: True)
        service.start(None)

        service.refresh()

        assert recording_sink.last.text.endswith("(device audio playing)")

    def test_failing_audio_probe_is_tolerated(self, make_service, recording_sink):
        def broken_audio():
            raise RuntimeError("no audio device")

        service = make_service(audio_probe=broken_audio)
        service.start(None)

        service.refresh()

        assert recording_sink.last.text == "StatBuddy running"

    def test_timer_republishes(self, make_service, recording_sink):
        service = make_service(config=ServiceConfig(update_interval=0.05))

        service.start(None)

        assert recording_sink.wait_for(lambda sink: len(sink.published) >= 3)
        service.stop()

    def test_refresh_timer_survives_callback_errors(self):
        calls = []
        done = threading.Event()

        def callback():
            calls.append(1)
            if len(calls) >= 3:
                done.set()
            raise RuntimeError("publish failed")

        timer = RefreshTimer(0.01, callback)
        timer.start()
        try:
            assert done.wait(5)
        finally:
            timer.stop()

        assert not timer.running


class TestServiceConfig:
    """Tests for ServiceConfig."""

    def test_defaults(self):
        config = ServiceConfig()

        assert config.update_interval == 15.0
        assert config.thumbnail_size == 64
        assert config.future_offset_ms == 100000000

    def test_from_dict_ignores_unknown_keys(self):
        config = ServiceConfig.from_dict({"update_interval": 5, "unknown": True})

        assert config.update_interval == 5

    def test_round_trip(self):
        config = ServiceConfig(update_interval=3.0, text="Hello")

        assert ServiceConfig.from_dict(config.to_dict()) == config

    @pytest.mark.parametrize("data", [{"update_interval": 0}, {"thumbnail_size": -1}])
    def test_rejects_invalid_values(self, data):
        with pytest.raises(ValueError):
            ServiceConfig.from_dict(data)
