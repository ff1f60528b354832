"""
Unit tests for the engagement moderator.
"""
import pytest

from advanced_media.config import Config
from advanced_media.errors import AlreadyInFlight, NotFound, TranslationError, ValidationError
from advanced_media.gui.engagement_moderator import (
    DISLIKE_REMOVAL_THRESHOLD, EngagementModerator, FAILED_MESSAGE, TIMEOUT_MESSAGE,
    UNAVAILABLE_MESSAGE,
)
from advanced_media.models import Comment, Done, Failed, Idle, InFlight
from advanced_media.store import MemoryCommentStore

from .conftest import BrokenStore, FakeTranslator


@pytest.fixture
def moderator(qtbot, store, config):
    return EngagementModerator(store, FakeTranslator(), config)


def is_final(comment_id, state):
    return isinstance(state, (Done, Failed))


class TestSubmit:
    """Test comment submission and validation."""

    def test_submit_prepends_newest(self, moderator, store):
        first = moderator.submit("alice", "First!")
        second = moderator.submit("bob", "  Great video!  ")

        assert [c.id for c in moderator.comments] == [second.id, first.id]
        assert second.text == "Great video!"
        assert second.likes == 0 and second.dislikes == 0
        assert second.translation == Idle()
        assert [c.id for c in store.load()] == [second.id, first.id]

    def test_submit_uses_configured_city(self, moderator):
        comment = moderator.submit("alice", "Hello")
        assert comment.city == "Mockville"

    def test_submit_emits_signal(self, qtbot, moderator):
        with qtbot.waitSignal(moderator.comment_added) as blocker:
            moderator.submit("alice", "Nice")
        assert blocker.args[0].text == "Nice"

    def test_script_tag_rejected(self, moderator, store):
        with pytest.raises(ValidationError, match="disallowed characters"):
            moderator.submit("alice", "<script>")
        assert moderator.comments == []
        assert store.save_count == 0

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_text_rejected(self, moderator, text):
        with pytest.raises(ValidationError, match="cannot be empty"):
            moderator.submit("alice", text)

    @pytest.mark.parametrize("author", [None, ""])
    def test_missing_author_rejected(self, moderator, author):
        with pytest.raises(ValidationError, match="logged in"):
            moderator.submit(author, "Great video!")

    @pytest.mark.parametrize("text", ["tab\there", "nbsp\xa0here", "windows\r\nline"])
    def test_non_space_whitespace_rejected(self, moderator, text):
        with pytest.raises(ValidationError, match="disallowed characters"):
            moderator.submit("alice", text)

    @pytest.mark.parametrize("author", ["  ", "\t"])
    def test_blank_author_rejected(self, moderator, author):
        with pytest.raises(ValidationError, match="logged in"):
            moderator.submit(author, "Great video!")
        assert moderator.comments == []

    def test_multiline_punctuation_allowed(self, moderator):
        comment = moderator.submit("alice", "Wow! (really)\n\"Best\" part: 2:30; loved it - yes?")
        assert comment in moderator.comments


class TestLikeDislike:
    """Test engagement counters and the dislike removal rule."""

    def test_like_increments(self, moderator, store):
        comment = moderator.submit("alice", "Hi")
        moderator.like(comment.id)
        moderator.like(comment.id)

        assert moderator.get(comment.id).likes == 2
        assert store.load()[0].likes == 2

    def test_like_missing_is_noop(self, moderator):
        assert moderator.like("gone") is None

    def test_two_dislikes_remove(self, qtbot, moderator, store):
        comment = moderator.submit("alice", "Hot take")

        assert moderator.dislike(comment.id) is False
        assert moderator.get(comment.id).dislikes == 1

        with qtbot.waitSignal(moderator.comment_removed) as blocker:
            assert moderator.dislike(comment.id) is True

        assert blocker.args == [comment.id]
        assert moderator.get(comment.id) is None
        assert store.load() == []

    def test_third_dislike_is_noop(self, moderator):
        comment = moderator.submit("alice", "Hot take")
        moderator.dislike(comment.id)
        moderator.dislike(comment.id)

        assert moderator.dislike(comment.id) is False
        assert moderator.comments == []

    def test_default_threshold(self, moderator):
        assert moderator.dislike_threshold == DISLIKE_REMOVAL_THRESHOLD == 2

    def test_custom_threshold(self, qtbot, store, config):
        moderator = EngagementModerator(store, config=config, dislike_threshold=3)
        comment = moderator.submit("alice", "Hot take")
        moderator.dislike(comment.id)
        moderator.dislike(comment.id)

        assert moderator.get(comment.id).dislikes == 2
        assert moderator.dislike(comment.id) is True


class TestPersistence:
    """Test store interaction."""

    def test_loads_existing_comments(self, qtbot, config):
        existing = Comment(author="carol", text="Old one")
        moderator = EngagementModerator(MemoryCommentStore([existing]), config=config)

        assert [c.id for c in moderator.comments] == [existing.id]

    def test_broken_store_is_not_fatal(self, qtbot, config):
        moderator = EngagementModerator(BrokenStore(), config=config)

        assert moderator.comments == []
        comment = moderator.submit("alice", "Still works")
        assert moderator.get(comment.id) is comment


class TestTranslation:
    """Test translation requests and their deduplication."""

    def test_missing_comment(self, moderator):
        with pytest.raises(NotFound):
            moderator.request_translation("gone", "en")

    def test_unsupported_language(self, moderator):
        comment = moderator.submit("alice", "Hello")
        with pytest.raises(ValidationError):
            moderator.request_translation(comment.id, "xx")

    def test_unavailable_translator_fails_without_call(self, qtbot, store, config):
        translator = FakeTranslator(available=False)
        moderator = EngagementModerator(store, translator, config)
        comment = moderator.submit("alice", "Hello")

        state = moderator.request_translation(comment.id, "fr")

        assert state == Failed("fr", UNAVAILABLE_MESSAGE)
        assert translator.calls == []
        assert moderator.translation_available is False

    def test_no_translator_is_unavailable(self, qtbot, store, config):
        moderator = EngagementModerator(store, config=config)
        comment = moderator.submit("alice", "Hello")

        assert moderator.translation_available is False
        assert isinstance(moderator.request_translation(comment.id, "de"), Failed)

    def test_success(self, qtbot, moderator):
        comment = moderator.submit("alice", "Hello")

        with qtbot.waitSignal(moderator.translation_changed, timeout=3000,
                              check_params_cb=is_final) as blocker:
            state = moderator.request_translation(comment.id, "es")
            assert state == InFlight("es")

        assert blocker.args == [comment.id, Done("es", "Hello [es]")]
        assert moderator.get(comment.id).translation == Done("es", "Hello [es]")

    def test_concurrent_request_rejected_then_cached(self, qtbot, store, config):
        translator = FakeTranslator(block=True)
        moderator = EngagementModerator(store, translator, config)
        comment = moderator.submit("alice", "Great video!")

        moderator.request_translation(comment.id, "ta")
        with pytest.raises(AlreadyInFlight):
            moderator.request_translation(comment.id, "ta")
        with pytest.raises(AlreadyInFlight):
            moderator.request_translation(comment.id, "ja")

        with qtbot.waitSignal(moderator.translation_changed, timeout=3000, check_params_cb=is_final):
            translator.release()

        cached = moderator.request_translation(comment.id, "ta")

        assert cached == Done("ta", "Great video! [ta]")
        assert translator.calls == [("Great video!", "ta")]

    def test_other_language_after_done(self, qtbot, moderator):
        comment = moderator.submit("alice", "Hello")
        with qtbot.waitSignal(moderator.translation_changed, timeout=3000, check_params_cb=is_final):
            moderator.request_translation(comment.id, "en")

        with qtbot.waitSignal(moderator.translation_changed, timeout=3000, check_params_cb=is_final):
            assert moderator.request_translation(comment.id, "ko") == InFlight("ko")

        assert moderator.get(comment.id).translation == Done("ko", "Hello [ko]")

    def test_translator_error_degrades_to_failed(self, qtbot, store, config):
        translator = FakeTranslator(error=TranslationError("quota"))
        moderator = EngagementModerator(store, translator, config)
        comment = moderator.submit("alice", "Hello")

        with qtbot.waitSignal(moderator.translation_changed, timeout=3000, check_params_cb=is_final):
            moderator.request_translation(comment.id, "hi")

        assert moderator.get(comment.id).translation == Failed("hi", FAILED_MESSAGE)
        # The lock is released, so a retry goes out
        translator.error = None
        with qtbot.waitSignal(moderator.translation_changed, timeout=3000, check_params_cb=is_final):
            moderator.request_translation(comment.id, "hi")
        assert moderator.get(comment.id).translation == Done("hi", "Hello [hi]")

    def test_result_for_removed_comment_is_discarded(self, qtbot, store, config):
        translator = FakeTranslator(block=True)
        moderator = EngagementModerator(store, translator, config)
        comment = moderator.submit("alice", "Hello")
        changes = []
        moderator.translation_changed.connect(lambda cid, state: changes.append(state))

        moderator.request_translation(comment.id, "fr")
        moderator.dislike(comment.id)
        moderator.dislike(comment.id)
        translator.release()

        qtbot.waitUntil(translator.finished.is_set, timeout=3000)
        qtbot.wait(100)

        assert changes == [InFlight("fr")]
        assert moderator.comments == []
        assert store.load() == []

    def test_timeout_marks_failed_and_drops_late_result(self, qtbot, store):
        config = Config(comments_path="unused.json", translation_timeout_seconds=0.05)
        translator = FakeTranslator(block=True)
        moderator = EngagementModerator(store, translator, config)
        comment = moderator.submit("alice", "Hello")

        with qtbot.waitSignal(moderator.translation_changed, timeout=3000, check_params_cb=is_final):
            moderator.request_translation(comment.id, "de")

        assert moderator.get(comment.id).translation == Failed("de", TIMEOUT_MESSAGE)

        translator.release()
        qtbot.waitUntil(translator.finished.is_set, timeout=3000)
        qtbot.wait(100)

        assert moderator.get(comment.id).translation == Failed("de", TIMEOUT_MESSAGE)

    def test_in_flight_state_is_persisted(self, qtbot, store, config):
        translator = FakeTranslator(block=True)
        moderator = EngagementModerator(store, translator, config)
        comment = moderator.submit("alice", "Hello")

        moderator.request_translation(comment.id, "fr")

        # A restart never sees a stuck lock
        assert store.load()[0].translation == Idle()
        assert store._records[0]["translation"] == {"status": "in_flight", "target_lang": "fr"}

        with qtbot.waitSignal(moderator.translation_changed, timeout=3000, check_params_cb=is_final):
            translator.release()
