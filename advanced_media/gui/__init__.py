"""Qt controllers and widgets for the watch page."""

from .playback_controller import PlaybackController, PlaybackState
from .engagement_moderator import EngagementModerator, DISLIKE_REMOVAL_THRESHOLD

__all__ = [
    "PlaybackController",
    "PlaybackState",
    "EngagementModerator",
    "DISLIKE_REMOVAL_THRESHOLD",
]
