"""
Pytest configuration and shared fixtures for StatBuddy tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import threading

import pytest
from PIL import Image

from SB_Libs.NotifyLib.notification_service import NotificationSink


class RecordingSink(NotificationSink):
    """In-memory notification sink that records everything it is asked to draw."""

    def __init__(self):
        self.published = []
        self.withdrawn = 0
        self._lock = threading.Lock()
        self._condition = threading.Condition(self._lock)

    def publish(self, content):
        with self._condition:
            self.published.append(content)
            self._condition.notify_all()

    def withdraw(self):
        with self._condition:
            self.withdrawn += 1
            self._condition.notify_all()

    @property
    def last(self):
        return self.published[-1] if self.published else None

    def wait_for(self, predicate, timeout=5.0):
        """Block until ``predicate(self)`` is true or the timeout expires."""
        with self._condition:
            return self._condition.wait_for(lambda: predicate(self), timeout=timeout)


@pytest.fixture
def make_image_file(tmp_path):
    """
    Provide a factory writing solid-colour images into a temporary directory.

    Returns:
        Callable(name, size=(800, 600), color=(255, 0, 0, 255), mode="RGBA") -> str path
    """
    def factory(name="source.png", size=(800, 600), color=(255, 0, 0, 255), mode="RGBA"):
        path = tmp_path / name
        Image.new(mode, size, color if mode == "RGBA" else color[:3]).save(path)
        return str(path)

    return factory


@pytest.fixture
def cache_dir(tmp_path):
    """Provide a cache directory inside the test's temporary directory."""
    return tmp_path / "cache"


@pytest.fixture
def recording_sink():
    return RecordingSink()
