"""Shared fixtures: fake media sink, translator and comment store."""
import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import threading

import pytest

from advanced_media.config import Config
from advanced_media.errors import CommentStoreError
from advanced_media.models import Plan, VideoSource
from advanced_media.store import MemoryCommentStore


SOURCES = [
    VideoSource(quality="360p", url="http://example.com/360.mp4"),
    VideoSource(quality="480p", url="http://example.com/480.mp4"),
    VideoSource(quality="720p", url="http://example.com/720.mp4"),
]

FIVE_MINUTES = Plan(id="free", name="Free", time_limit_seconds=300)
UNLIMITED = Plan(id="gold", name="Gold", time_limit_seconds=None)


class FakeMediaSink:
    """Records every directive; load completion can be held back."""

    def __init__(self, auto_complete: bool = True):
        self.auto_complete = auto_complete
        self.calls: list[tuple] = []
        self.pending_loads: list = []
        self._position = 0.0
        self._playing = False

    def load(self, url, on_loaded):
        self.calls.append(("load", url))
        self._position = 0.0
        self._playing = False
        if self.auto_complete:
            on_loaded()
        else:
            self.pending_loads.append(on_loaded)

    def complete_load(self, index: int = 0):
        self.pending_loads.pop(index)()

    def seek(self, seconds):
        self.calls.append(("seek", seconds))
        self._position = seconds

    def play(self):
        self.calls.append(("play",))
        self._playing = True

    def pause(self):
        self.calls.append(("pause",))
        self._playing = False

    def current_position(self):
        return self._position

    def is_playing(self):
        return self._playing

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)


class FakeTranslator:
    """Translator double; set block=True to hold requests until release()."""

    def __init__(self, available: bool = True, error: Exception | None = None, block: bool = False):
        self.available = available
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.finished = threading.Event()
        self._gate = threading.Event()
        if not block:
            self._gate.set()

    def release(self):
        self._gate.set()

    def is_available(self):
        return self.available

    def translate(self, text, target_lang):
        self.calls.append((text, target_lang))
        try:
            self._gate.wait(5)
            if self.error is not None:
                raise self.error
            return f"{text} [{target_lang}]"
        finally:
            self.finished.set()


class BrokenStore:
    """Store whose reads and writes always fail."""

    def load(self):
        raise CommentStoreError("corrupt")

    def save(self, comments):
        raise CommentStoreError("disk full")


@pytest.fixture
def sink():
    return FakeMediaSink()


@pytest.fixture
def store():
    return MemoryCommentStore()


@pytest.fixture
def config():
    return Config(comments_path="unused.json", translation_timeout_seconds=5.0)
