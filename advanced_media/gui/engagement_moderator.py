"""Comment moderation: likes, dislike removal and deduplicated translation."""

import threading
from typing import Protocol

from PySide6.QtCore import QObject, Signal, QTimer
from rich.console import Console

from ..config import AVAILABLE_LANGUAGES, Config
from ..errors import AlreadyInFlight, CommentStoreError, NotFound, ValidationError
from ..models import (
    Comment, Done, Failed, InFlight, TranslationState, is_valid_comment_text,
)

console = Console()

# Moderation policy: a comment is removed as soon as it collects this many dislikes
DISLIKE_REMOVAL_THRESHOLD = 2

UNAVAILABLE_MESSAGE = "Translation unavailable (API key missing)."
FAILED_MESSAGE = "Translation process failed."
TIMEOUT_MESSAGE = "Translation timed out."


class Translator(Protocol):
    def is_available(self) -> bool: ...
    def translate(self, text: str, target_lang: str) -> str: ...


class CommentStore(Protocol):
    def load(self) -> list[Comment]: ...
    def save(self, comments: list[Comment]) -> None: ...


class EngagementModerator(QObject):
    """Owns the comment collection and enforces its mutation rules.

    Comments are kept newest first and persisted after every change.
    Translations run on a background thread; while one is outstanding the
    comment's translation state is InFlight and further requests for that
    comment are refused. Results are handed back to the Qt thread and
    dropped if the comment was removed or the request timed out meanwhile.

    Signals:
        comment_added: New comment (Comment)
        comment_updated: Comment whose counters or translation changed
        comment_removed: Id of a comment deleted by the dislike rule
        translation_changed: (comment_id, TranslationState)
    """

    comment_added = Signal(object)
    comment_updated = Signal(object)
    comment_removed = Signal(str)
    translation_changed = Signal(str, object)
    _translation_done = Signal(str, int, object, object)  # comment_id, token, text, error

    def __init__(
        self,
        store: CommentStore,
        translator: Translator | None = None,
        config: Config | None = None,
        dislike_threshold: int = DISLIKE_REMOVAL_THRESHOLD,
        parent=None,
    ):
        super().__init__(parent)
        self._config = config or Config()
        self._store = store
        self._translator = translator
        self._dislike_threshold = dislike_threshold

        self._comments: list[Comment] = self._load()

        # comment_id -> token of its outstanding translation request
        self._requests: dict[str, int] = {}
        self._next_token = 0
        self._timers: dict[int, QTimer] = {}

        self._translation_done.connect(self._on_translation_done)

    @property
    def comments(self) -> list[Comment]:
        """Comments, newest first."""
        return list(self._comments)

    @property
    def translation_available(self) -> bool:
        """Whether the translate action can be offered at all."""
        return self._translator is not None and self._translator.is_available()

    @property
    def dislike_threshold(self) -> int:
        return self._dislike_threshold

    def get(self, comment_id: str) -> Comment | None:
        for comment in self._comments:
            if comment.id == comment_id:
                return comment
        return None

    # Persistence

    def _load(self) -> list[Comment]:
        try:
            return self._store.load()
        except CommentStoreError as e:
            console.print(f"[yellow]Warning: failed to load comments, starting empty: {e}[/yellow]")
            return []

    def _persist(self) -> None:
        try:
            self._store.save(self._comments)
        except CommentStoreError as e:
            console.print(f"[red]Failed to save comments: {e}[/red]")

    # Comment operations

    def submit(self, author_id: str | None, raw_text: str, city: str | None = None) -> Comment:
        """
        Post a new comment at the top of the collection.

        Args:
            author_id: Logged-in user's name; None when nobody is logged in
            raw_text: Comment text as typed
            city: Location shown with the comment (defaults to the configured city)

        Raises:
            ValidationError: No author, empty text, or disallowed characters
        """
        if not author_id or not author_id.strip():
            raise ValidationError("You must be logged in to comment.")

        text = (raw_text or "").strip()
        if not text:
            raise ValidationError("Comment cannot be empty.")
        if not is_valid_comment_text(text):
            raise ValidationError(
                "Comment contains disallowed characters. Please use only letters, numbers, "
                "spaces, and basic punctuation (.,!?\"'():;-)."
            )

        comment = Comment(
            author=author_id,
            text=text,
            city=city if city is not None else self._config.comment_city,
        )
        self._comments.insert(0, comment)
        self._persist()
        self.comment_added.emit(comment)
        return comment

    def like(self, comment_id: str) -> Comment | None:
        """Add a like. A comment that has already been removed is ignored."""
        comment = self.get(comment_id)
        if comment is None:
            console.print(f"[dim]Ignoring like for missing comment {comment_id}[/dim]")
            return None

        comment.likes += 1
        self._persist()
        self.comment_updated.emit(comment)
        return comment

    def dislike(self, comment_id: str) -> bool:
        """
        Add a dislike, deleting the comment once it reaches the threshold.

        Returns:
            True if the comment was removed by this dislike
        """
        comment = self.get(comment_id)
        if comment is None:
            console.print(f"[dim]Ignoring dislike for missing comment {comment_id}[/dim]")
            return False

        comment.dislikes += 1
        if comment.dislikes >= self._dislike_threshold:
            self._comments.remove(comment)
            # Any outstanding translation for it is now stale
            self._requests.pop(comment_id, None)
            self._persist()
            console.print(
                f"[yellow]Comment removed due to reaching {self._dislike_threshold} dislikes.[/yellow]"
            )
            self.comment_removed.emit(comment_id)
            return True

        self._persist()
        self.comment_updated.emit(comment)
        return False

    # Translation

    def request_translation(self, comment_id: str, target_lang: str) -> TranslationState:
        """
        Translate a comment, allowing one outstanding request per comment.

        Returns:
            The comment's translation state after the call: InFlight for a new
            request, the cached Done for a repeat, or Failed when the
            translator is unavailable

        Raises:
            NotFound: The comment no longer exists
            ValidationError: Unsupported language code
            AlreadyInFlight: A translation for this comment is outstanding
        """
        comment = self.get(comment_id)
        if comment is None:
            raise NotFound(f"Comment {comment_id} no longer exists")
        if target_lang not in AVAILABLE_LANGUAGES:
            raise ValidationError(f"Unsupported language: {target_lang}")

        state = comment.translation
        if isinstance(state, InFlight):
            raise AlreadyInFlight(
                f"Comment {comment_id} is already being translated to {state.target_lang}"
            )
        if isinstance(state, Done) and state.target_lang == target_lang:
            return state

        if not self.translation_available:
            self._set_translation(comment, Failed(target_lang, UNAVAILABLE_MESSAGE))
            return comment.translation

        self._next_token += 1
        token = self._next_token
        self._requests[comment_id] = token
        self._set_translation(comment, InFlight(target_lang))
        self._start_timeout(comment_id, token)
        self._start_worker(comment_id, token, comment.text, target_lang)
        return comment.translation

    def _start_worker(self, comment_id: str, token: int, text: str, target_lang: str) -> None:
        translator = self._translator

        def run_translation() -> None:
            try:
                translated = translator.translate(text, target_lang)
            except Exception as exc:
                self._translation_done.emit(comment_id, token, None, exc)
            else:
                self._translation_done.emit(comment_id, token, translated, None)

        thread = threading.Thread(
            target=run_translation,
            name=f"translate-{comment_id[:8]}",
            daemon=True,
        )
        thread.start()

    def _start_timeout(self, comment_id: str, token: int) -> None:
        timer = QTimer(self)
        timer.setSingleShot(True)
        timer.timeout.connect(lambda: self._on_translation_timeout(comment_id, token))
        timer.start(int(self._config.translation_timeout_seconds * 1000))
        self._timers[token] = timer

    def _stop_timeout(self, token: int) -> None:
        timer = self._timers.pop(token, None)
        if timer is not None:
            timer.stop()
            timer.deleteLater()

    def _finish_request(self, comment_id: str, token: int) -> Comment | None:
        """Release the request lock; returns the comment if the result still applies."""
        self._stop_timeout(token)
        if self._requests.get(comment_id) != token:
            return None
        del self._requests[comment_id]

        comment = self.get(comment_id)
        if comment is None or not isinstance(comment.translation, InFlight):
            return None
        return comment

    def _on_translation_done(self, comment_id: str, token: int, text: object, error: object) -> None:
        comment = self._finish_request(comment_id, token)
        if comment is None:
            console.print(f"[dim]Discarding stale translation for comment {comment_id}[/dim]")
            return

        target_lang = comment.translation.target_lang
        if error is not None:
            console.print(f"[red]Error translating comment {comment_id}: {error}[/red]")
            self._set_translation(comment, Failed(target_lang, FAILED_MESSAGE))
        else:
            self._set_translation(comment, Done(target_lang, str(text)))

    def _on_translation_timeout(self, comment_id: str, token: int) -> None:
        comment = self._finish_request(comment_id, token)
        if comment is None:
            return

        target_lang = comment.translation.target_lang
        console.print(f"[yellow]Warning: translation of comment {comment_id} timed out[/yellow]")
        self._set_translation(comment, Failed(target_lang, TIMEOUT_MESSAGE))

    def _set_translation(self, comment: Comment, state: TranslationState) -> None:
        comment.translation = state
        self._persist()
        self.translation_changed.emit(comment.id, state)
        self.comment_updated.emit(comment)
