"""Playback controller enforcing plan time limits across quality switches."""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Protocol

from PySide6.QtCore import QObject, Signal
from rich.console import Console

from ..errors import ValidationError
from ..models import PlaybackSession, Plan, VideoSource

console = Console()


class MediaSink(Protocol):
    """The video element the controller drives."""

    def load(self, url: str, on_loaded: Callable[[], None]) -> None: ...
    def seek(self, seconds: float) -> None: ...
    def play(self) -> None: ...
    def pause(self) -> None: ...
    def current_position(self) -> float: ...
    def is_playing(self) -> bool: ...


class PlaybackState(Enum):
    """Playback state machine states."""
    STOPPED = auto()
    PLAYING = auto()
    PAUSED = auto()
    LIMIT_LOCKED = auto()  # Plan time limit reached; play is refused


@dataclass
class _PendingSwitch:
    """A quality switch waiting for its source to finish loading."""
    token: int
    quality: str
    position: float
    was_playing: bool


class PlaybackController(QObject):
    """Drives one playback session against a media sink.

    Quality is independent of position: switching quality loads the new
    source, then seeks back to the captured position and resumes if the
    video was playing. The seek and resume happen only once the sink
    reports the load as complete; until then ticks are buffered.

    Signals:
        state_changed: Emitted when the playback state changes
        position_changed: Emitted with the session position (seconds)
        quality_changed: Emitted when a quality switch starts
        switch_finished: Emitted when a quality switch has seeked into place
        limit_reached: Emitted with the plan once per limit lock, and again
            whenever play() is refused while locked
    """

    state_changed = Signal(PlaybackState)
    position_changed = Signal(float)
    quality_changed = Signal(str)
    switch_finished = Signal(str)
    limit_reached = Signal(object)  # Plan

    def __init__(self, sources: list[VideoSource], plan: Plan, sink: MediaSink, parent=None):
        super().__init__(parent)

        # Raises ConfigurationError for an empty source list
        self._session = PlaybackSession(sources=list(sources))
        self._plan = plan
        self._sink = sink
        self._state = PlaybackState.PAUSED

        self._pending: _PendingSwitch | None = None
        self._switch_token = 0
        self._buffered_position: float | None = None
        self._resume_after_switch = False
        # Play state captured by the latest quality switch; kept until the next one
        self._playing_before_switch = False

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def session(self) -> PlaybackSession:
        return self._session

    @property
    def plan(self) -> Plan:
        return self._plan

    @property
    def position(self) -> float:
        return self._session.position_seconds

    @property
    def is_switching(self) -> bool:
        """True while a source load is outstanding."""
        return self._pending is not None

    def _set_state(self, new_state: PlaybackState):
        """Update internal state and emit signal."""
        if self._state != new_state:
            self._state = new_state
            self._session.is_playing = new_state == PlaybackState.PLAYING
            self.state_changed.emit(new_state)

    # Source loading

    def open(self) -> None:
        """Load the selected source into the sink at the session position."""
        self._begin_load(self._session.selected_quality,
                         self._session.position_seconds, was_playing=False)

    def select_quality(self, quality: str) -> None:
        """Switch to another source, keeping position and play state."""
        if self._session.source_for(quality) is None:
            raise ValidationError(f"Unknown quality: {quality}")
        if quality == self._session.selected_quality:
            return

        if self._pending is not None:
            # Superseding a switch that has not landed yet: keep its capture
            position = self._pending.position
            was_playing = self._pending.was_playing
        else:
            position = self._session.position_seconds
            was_playing = self._state == PlaybackState.PLAYING
            if was_playing:
                self._sink.pause()
                self._set_state(PlaybackState.PAUSED)

        self._resume_after_switch = was_playing
        self._playing_before_switch = was_playing
        self._session.selected_quality = quality
        self.quality_changed.emit(quality)
        console.print(f"[dim]Switching to {quality} at {position:.1f}s[/dim]")
        self._begin_load(quality, position, was_playing)

    def _begin_load(self, quality: str, position: float, was_playing: bool) -> None:
        self._switch_token += 1
        token = self._switch_token
        self._pending = _PendingSwitch(token, quality, position, was_playing)
        self._buffered_position = None
        source = self._session.source_for(quality)
        self._sink.load(source.url, lambda: self._on_source_loaded(token))

    def _on_source_loaded(self, token: int) -> None:
        pending = self._pending
        if pending is None or pending.token != token:
            console.print("[dim]Ignoring load completion for a superseded source[/dim]")
            return

        self._pending = None
        self._sink.seek(pending.position)
        self._session.position_seconds = pending.position
        self.position_changed.emit(pending.position)

        buffered, self._buffered_position = self._buffered_position, None
        if buffered is not None and buffered > pending.position:
            self.tick(buffered)

        if (self._resume_after_switch
                and self._state == PlaybackState.PAUSED
                and not self._plan.is_limit_exceeded(self._session.position_seconds)):
            self._start_playback()

        self.switch_finished.emit(pending.quality)

    # Time limit

    def tick(self, elapsed_seconds: float) -> None:
        """Record the media time reported by the sink and enforce the plan limit."""
        if self._state == PlaybackState.LIMIT_LOCKED:
            return

        position = max(0.0, float(elapsed_seconds))
        if self._pending is not None:
            if self._buffered_position is None or position > self._buffered_position:
                self._buffered_position = position
            return

        self._session.position_seconds = position
        self.position_changed.emit(position)
        self._check_limit()

    def _check_limit(self) -> None:
        if self._state == PlaybackState.LIMIT_LOCKED:
            return
        if self._plan.is_limit_exceeded(self._current_position()):
            self._lock()

    def _current_position(self) -> float:
        if self._pending is not None:
            return self._pending.position
        return self._session.position_seconds

    def _lock(self) -> None:
        self._sink.pause()
        self._session.limit_reached = True
        self._set_state(PlaybackState.LIMIT_LOCKED)

        minutes = self._plan.time_limit_seconds // 60
        console.print(
            f"[yellow]Your {self._plan.name} plan allows {minutes} minutes of viewing. "
            f"Please upgrade for more time.[/yellow]"
        )
        self.limit_reached.emit(self._plan)

    def set_plan(self, plan: Plan) -> None:
        """Apply a new plan, lifting any lock held under the previous one."""
        if plan == self._plan:
            return

        self._plan = plan
        self._session.limit_reached = False
        if self._state == PlaybackState.LIMIT_LOCKED:
            self._set_state(PlaybackState.PAUSED)

        if plan.is_limit_exceeded(self._current_position()):
            self._lock()
            return

        # A pending switch resumes on its own once loaded
        if (self._pending is None
                and self._state == PlaybackState.PAUSED
                and self._playing_before_switch):
            self._start_playback()

    # User intent

    def play(self) -> None:
        """Start playback unless the plan limit has been reached."""
        if self._state == PlaybackState.LIMIT_LOCKED:
            console.print(f"[yellow]Play refused: {self._plan.name} plan limit reached[/yellow]")
            self.limit_reached.emit(self._plan)
            return

        if self._pending is not None:
            self._resume_after_switch = True
            return

        self._start_playback()

    def _start_playback(self) -> None:
        self._resume_after_switch = False
        self._sink.play()
        self._set_state(PlaybackState.PLAYING)

    def pause(self) -> None:
        """Pause playback."""
        self._resume_after_switch = False
        if self._state == PlaybackState.PLAYING:
            self._sink.pause()
            self._set_state(PlaybackState.PAUSED)

    def toggle_play(self) -> None:
        """Toggle between play and pause."""
        if self._state == PlaybackState.PLAYING:
            self.pause()
        else:
            self.play()

    def seek(self, seconds: float) -> None:
        """Move to an explicit position (scrub or rewind)."""
        position = max(0.0, float(seconds))
        if self._pending is not None:
            self._pending.position = position
        else:
            self._sink.seek(position)
        self._session.position_seconds = position
        self.position_changed.emit(position)
        self._check_limit()

    def stop(self) -> None:
        """Stop playback and rewind to the start."""
        self._resume_after_switch = False
        self._playing_before_switch = False
        self._sink.pause()
        if self._pending is not None:
            self._pending.position = 0.0
        else:
            self._sink.seek(0.0)
        self._session.position_seconds = 0.0
        self.position_changed.emit(0.0)
        if self._state != PlaybackState.LIMIT_LOCKED:
            self._set_state(PlaybackState.STOPPED)
