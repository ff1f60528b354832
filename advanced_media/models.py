"""Data models for playback sessions and comments."""

import re
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Union

from .errors import ConfigurationError

# Letters, digits, spaces, newlines and basic punctuation only
_COMMENT_TEXT_PATTERN = re.compile(r"^[A-Za-z0-9 .,!?'\"():;\n-]*$")


def is_valid_comment_text(text: str) -> bool:
    """Check that comment text only uses the allowed character set."""
    return _COMMENT_TEXT_PATTERN.match(text) is not None


@dataclass(frozen=True)
class VideoSource:
    """One encoding of a video, keyed by its quality label."""
    quality: str  # e.g. "720p"
    url: str


@dataclass(frozen=True)
class Plan:
    """A subscription plan bounding how much of a video may be watched."""
    id: str
    name: str
    time_limit_seconds: int | None  # None = unlimited
    price: int = 0
    features: tuple[str, ...] = ()

    @property
    def is_unlimited(self) -> bool:
        return self.time_limit_seconds is None

    def is_limit_exceeded(self, position_seconds: float) -> bool:
        """Check whether a playback position is at or past this plan's limit."""
        if self.time_limit_seconds is None:
            return False
        return position_seconds >= self.time_limit_seconds


@dataclass
class PlaybackSession:
    """
    Mutable playback state for one open video.

    The selected quality always names one of the sources, and the position
    is carried across quality switches rather than reset.
    """
    sources: list[VideoSource]
    selected_quality: str = ""
    position_seconds: float = 0.0
    is_playing: bool = False
    limit_reached: bool = False

    def __post_init__(self):
        if not self.sources:
            raise ConfigurationError("A playback session needs at least one video source")

        qualities = [s.quality for s in self.sources]
        if len(set(qualities)) != len(qualities):
            raise ConfigurationError(f"Duplicate quality labels in sources: {qualities}")

        if not self.selected_quality:
            self.selected_quality = self.sources[0].quality
        elif self.source_for(self.selected_quality) is None:
            raise ConfigurationError(f"Unknown quality: {self.selected_quality}")

        self.position_seconds = max(0.0, float(self.position_seconds))

    @property
    def qualities(self) -> list[str]:
        return [s.quality for s in self.sources]

    @property
    def current_source(self) -> VideoSource:
        return self.source_for(self.selected_quality)

    def source_for(self, quality: str) -> VideoSource | None:
        """Find the source for a quality label, or None if there is none."""
        for source in self.sources:
            if source.quality == quality:
                return source
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sources": [{"quality": s.quality, "url": s.url} for s in self.sources],
            "selected_quality": self.selected_quality,
            "position_seconds": self.position_seconds,
            "is_playing": self.is_playing,
            "limit_reached": self.limit_reached,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlaybackSession":
        return cls(
            sources=[VideoSource(quality=s["quality"], url=s["url"]) for s in data.get("sources", [])],
            selected_quality=data.get("selected_quality", ""),
            position_seconds=data.get("position_seconds", 0.0),
            is_playing=data.get("is_playing", False),
            limit_reached=data.get("limit_reached", False),
        )


# Translation state variants

@dataclass(frozen=True)
class Idle:
    """No translation has been requested."""
    status = "idle"


@dataclass(frozen=True)
class InFlight:
    """A translation request is outstanding; acts as a per-comment lock."""
    target_lang: str
    status = "in_flight"


@dataclass(frozen=True)
class Done:
    """A translation completed successfully."""
    target_lang: str
    text: str
    status = "done"


@dataclass(frozen=True)
class Failed:
    """A translation failed; message is shown in place of the translated text."""
    target_lang: str
    message: str = "Translation process failed."
    status = "failed"


TranslationState = Union[Idle, InFlight, Done, Failed]


def translation_to_dict(state: TranslationState) -> dict[str, Any]:
    """Serialize a translation state with its status tag."""
    data: dict[str, Any] = {"status": state.status}
    if isinstance(state, (InFlight, Done, Failed)):
        data["target_lang"] = state.target_lang
    if isinstance(state, Done):
        data["text"] = state.text
    elif isinstance(state, Failed):
        data["message"] = state.message
    return data


def translation_from_dict(data: dict[str, Any] | None) -> TranslationState:
    """
    Restore a translation state.

    An in-flight request cannot outlive the process that issued it, so a
    persisted InFlight comes back as Idle.
    """
    if not data:
        return Idle()
    status = data.get("status", "idle")
    if status == "done":
        return Done(target_lang=data["target_lang"], text=data.get("text", ""))
    if status == "failed":
        return Failed(
            target_lang=data["target_lang"],
            message=data.get("message", "Translation process failed.")
        )
    return Idle()


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Comment:
    """A user comment with engagement counters and its translation state."""
    author: str
    text: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    likes: int = 0
    dislikes: int = 0
    translation: TranslationState = field(default_factory=Idle)
    created_at: int = field(default_factory=_now_ms)  # epoch milliseconds
    city: str = ""

    @property
    def is_translating(self) -> bool:
        return isinstance(self.translation, InFlight)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "author": self.author,
            "city": self.city,
            "text": self.text,
            "likes": self.likes,
            "dislikes": self.dislikes,
            "translation": translation_to_dict(self.translation),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Comment":
        return cls(
            id=str(data["id"]),
            author=data["author"],
            text=data["text"],
            likes=max(0, int(data.get("likes", 0))),
            dislikes=max(0, int(data.get("dislikes", 0))),
            translation=translation_from_dict(data.get("translation")),
            created_at=int(data.get("created_at", 0)),
            city=data.get("city", ""),
        )
