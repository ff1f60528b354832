"""Configuration settings and reference catalogues."""

from pathlib import Path

from pydantic import BaseModel, Field

from .models import Plan, VideoSource


class Config(BaseModel):
    """Configuration for the playback and engagement core."""

    # Comment settings
    comments_path: Path = Field(
        default=Path.home() / ".advanced_media" / "comments.json",
        description="JSON file the comment collection is persisted to"
    )
    comment_city: str = Field(
        default="Mockville",
        description="City shown next to comments posted from this client"
    )
    dislike_threshold: int = Field(
        default=2,
        ge=1,
        description="Dislikes at which a comment is removed (moderation policy)"
    )

    # Translation settings
    translation_model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used for comment translation"
    )
    translation_timeout_seconds: float = Field(
        default=15.0,
        gt=0.0,
        le=300.0,
        description="Outstanding translations are marked failed after this long"
    )

    # Playback settings
    default_plan_id: str = Field(
        default="free",
        description="Plan applied when no plan has been chosen"
    )


# Subscription plans (time limits in seconds, None = unlimited)
PLANS: list[Plan] = [
    Plan(id="free", name="Free", time_limit_seconds=5 * 60, price=0,
         features=("Watch videos for 5 minutes",)),
    Plan(id="bronze", name="Bronze", time_limit_seconds=7 * 60, price=10,
         features=("Watch videos for 7 minutes", "Basic Support")),
    Plan(id="silver", name="Silver", time_limit_seconds=10 * 60, price=50,
         features=("Watch videos for 10 minutes", "Email Support")),
    Plan(id="gold", name="Gold", time_limit_seconds=None, price=100,
         features=("Unlimited video watching", "Priority Support")),
]

_SAMPLE_BUCKET = "http://commondatastorage.googleapis.com/gtv-videos-bucket/sample"

DEFAULT_VIDEO_SOURCES: list[VideoSource] = [
    VideoSource(quality="360p", url=f"{_SAMPLE_BUCKET}/ForBiggerFun.mp4"),
    VideoSource(quality="480p", url=f"{_SAMPLE_BUCKET}/ForBiggerJoyrides.mp4"),
    VideoSource(quality="720p", url=f"{_SAMPLE_BUCKET}/ForBiggerBlazes.mp4"),
    VideoSource(quality="1080p", url=f"{_SAMPLE_BUCKET}/ForBiggerEscapes.mp4"),
]

# Target languages offered for comment translation
AVAILABLE_LANGUAGES = ["en", "es", "fr", "de", "hi", "ta", "ja", "ko"]


def get_plan(plan_id: str | None) -> Plan:
    """Look up a plan by id, falling back to the first (free) plan."""
    for plan in PLANS:
        if plan.id == plan_id:
            return plan
    return PLANS[0]
