"""QMediaPlayer-backed media sink for the playback controller."""

from pathlib import Path
from typing import Callable

from PySide6.QtCore import QObject, Signal, Slot, QUrl
from PySide6.QtMultimedia import QMediaPlayer, QAudioOutput
from rich.console import Console

console = Console()


def to_qurl(url: str) -> QUrl:
    """Build a QUrl from a remote URL or a local file path."""
    if "://" in url:
        return QUrl(url)
    return QUrl.fromLocalFile(str(Path(url)))


class QtMediaSink(QObject):
    """
    Wraps QMediaPlayer behind the small interface the playback controller uses.

    load() reports completion through a callback once the new media is
    loaded, so the controller can seek and resume only after that point.

    Signals:
        position_changed: Current media time in seconds
        load_failed: Error string when a source cannot be loaded
    """

    position_changed = Signal(float)
    load_failed = Signal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._player = QMediaPlayer(self)
        self._audio_output = QAudioOutput(self)
        self._audio_output.setVolume(0.8)
        self._player.setAudioOutput(self._audio_output)

        self._on_loaded: Callable[[], None] | None = None

        self._player.mediaStatusChanged.connect(self._on_media_status_changed)
        self._player.positionChanged.connect(self._on_position_changed)
        self._player.errorOccurred.connect(self._on_error)

    @property
    def player(self) -> QMediaPlayer:
        """The wrapped player, for attaching a video output."""
        return self._player

    # Sink interface

    def load(self, url: str, on_loaded: Callable[[], None]) -> None:
        """Load a new source; on_loaded runs once the media is ready."""
        self._on_loaded = on_loaded
        self._player.setSource(to_qurl(url))

    def seek(self, seconds: float) -> None:
        self._player.setPosition(int(seconds * 1000))

    def play(self) -> None:
        if self._player.playbackState() != QMediaPlayer.PlaybackState.PlayingState:
            self._player.play()

    def pause(self) -> None:
        if self._player.playbackState() == QMediaPlayer.PlaybackState.PlayingState:
            self._player.pause()

    def current_position(self) -> float:
        return self._player.position() / 1000.0

    def is_playing(self) -> bool:
        return self._player.playbackState() == QMediaPlayer.PlaybackState.PlayingState

    # Player callbacks

    def _complete_load(self) -> None:
        callback, self._on_loaded = self._on_loaded, None
        if callback is not None:
            callback()

    @Slot(QMediaPlayer.MediaStatus)
    def _on_media_status_changed(self, status: QMediaPlayer.MediaStatus):
        if status in (QMediaPlayer.MediaStatus.LoadedMedia, QMediaPlayer.MediaStatus.BufferedMedia):
            self._complete_load()
        elif status == QMediaPlayer.MediaStatus.InvalidMedia:
            # Leave nothing waiting on a source that will never load
            self._complete_load()

    @Slot(int)
    def _on_position_changed(self, position_ms: int):
        # Position updates from a source that is still loading belong to no timeline yet
        if self._on_loaded is None:
            self.position_changed.emit(position_ms / 1000.0)

    def _on_error(self, error, error_string: str):
        console.print(f"[red]Media error: {error_string}[/red]")
        self.load_failed.emit(error_string)
