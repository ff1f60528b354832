"""Comment list widget wired to the engagement moderator."""

from datetime import datetime

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QScrollArea, QLabel, QFrame,
    QPushButton, QComboBox, QPlainTextEdit
)

from ..config import AVAILABLE_LANGUAGES
from ..errors import AdvancedMediaError, ValidationError
from ..models import Comment, Done, Failed, InFlight
from .engagement_moderator import EngagementModerator


class CommentWidget(QFrame):
    """Displays one comment with its like, dislike and translate actions."""

    like_clicked = Signal(str)  # comment id
    dislike_clicked = Signal(str)  # comment id
    translate_clicked = Signal(str, str)  # comment id, language code

    def __init__(self, comment: Comment, translation_available: bool, parent=None):
        super().__init__(parent)
        self.comment_id = comment.id
        self._translation_available = translation_available

        self.setFrameStyle(QFrame.Shape.Box | QFrame.Shadow.Plain)
        self.setLineWidth(1)

        self._setup_ui()
        self.set_comment(comment)

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 6, 8, 6)
        layout.setSpacing(4)

        self._meta_label = QLabel()
        self._meta_label.setStyleSheet("color: #888; font-size: 11px;")
        layout.addWidget(self._meta_label)

        self._text_label = QLabel()
        self._text_label.setWordWrap(True)
        layout.addWidget(self._text_label)

        self._translation_label = QLabel()
        self._translation_label.setWordWrap(True)
        self._translation_label.setStyleSheet("color: #aaa; font-style: italic;")
        layout.addWidget(self._translation_label)

        actions = QHBoxLayout()
        actions.setSpacing(6)

        self._like_btn = QPushButton()
        self._like_btn.clicked.connect(lambda: self.like_clicked.emit(self.comment_id))
        actions.addWidget(self._like_btn)

        self._dislike_btn = QPushButton()
        self._dislike_btn.clicked.connect(lambda: self.dislike_clicked.emit(self.comment_id))
        actions.addWidget(self._dislike_btn)

        actions.addStretch()

        self._lang_combo = QComboBox()
        for lang in AVAILABLE_LANGUAGES:
            self._lang_combo.addItem(lang.upper(), lang)
        actions.addWidget(self._lang_combo)

        self._translate_btn = QPushButton("Translate")
        self._translate_btn.clicked.connect(
            lambda: self.translate_clicked.emit(self.comment_id, self._lang_combo.currentData())
        )
        actions.addWidget(self._translate_btn)

        layout.addLayout(actions)

    def set_comment(self, comment: Comment):
        """Refresh the widget from the comment's current state."""
        posted = datetime.fromtimestamp(comment.created_at / 1000).strftime("%Y-%m-%d %H:%M")
        city = f" from {comment.city}" if comment.city else ""
        self._meta_label.setText(f"<b>{comment.author}</b>{city} - <i>{posted}</i>")
        self._text_label.setText(comment.text)
        self._like_btn.setText(f"Like ({comment.likes})")
        self._dislike_btn.setText(f"Dislike ({comment.dislikes})")

        state = comment.translation
        if isinstance(state, Done):
            self._translation_label.setText(f"(Translated to {state.target_lang.upper()}): {state.text}")
        elif isinstance(state, Failed):
            self._translation_label.setText(f"({state.target_lang.upper()}): {state.message}")
        else:
            self._translation_label.clear()
        self._translation_label.setVisible(bool(self._translation_label.text()))

        busy = isinstance(state, InFlight)
        enabled = self._translation_available and not busy
        self._lang_combo.setEnabled(enabled)
        self._translate_btn.setEnabled(enabled)
        self._translate_btn.setText("Translating..." if busy else "Translate")


class CommentPanel(QWidget):
    """Comment form plus the newest-first list of comments."""

    def __init__(self, moderator: EngagementModerator, author_id: str | None = None, parent=None):
        super().__init__(parent)
        self._moderator = moderator
        self._author_id = author_id
        self._widgets: dict[str, CommentWidget] = {}

        self._setup_ui()
        self._connect_signals()
        self._rebuild()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        title = QLabel("Comments")
        title.setStyleSheet("font-weight: bold; font-size: 14px;")
        layout.addWidget(title)

        if self._author_id:
            self._input = QPlainTextEdit()
            self._input.setPlaceholderText("Write your comment here...")
            self._input.setFixedHeight(70)
            layout.addWidget(self._input)

            self._submit_btn = QPushButton(f"Post as {self._author_id}")
            self._submit_btn.clicked.connect(self._on_submit)
            layout.addWidget(self._submit_btn)
        else:
            layout.addWidget(QLabel("Please log in to post comments."))

        self._error_label = QLabel()
        self._error_label.setStyleSheet("color: #f44336;")
        self._error_label.setWordWrap(True)
        self._error_label.hide()
        layout.addWidget(self._error_label)

        self._scroll_area = QScrollArea()
        self._scroll_area.setWidgetResizable(True)
        self._scroll_area.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)

        self._container = QWidget()
        self._container_layout = QVBoxLayout(self._container)
        self._container_layout.setContentsMargins(4, 4, 4, 4)
        self._container_layout.setSpacing(6)
        self._container_layout.addStretch()  # Push items to top

        self._empty_label = QLabel("No comments yet. Be the first to comment!")
        self._container_layout.insertWidget(0, self._empty_label)

        self._scroll_area.setWidget(self._container)
        layout.addWidget(self._scroll_area, stretch=1)

    def _connect_signals(self):
        self._moderator.comment_added.connect(self._on_comment_added)
        self._moderator.comment_updated.connect(self._on_comment_updated)
        self._moderator.comment_removed.connect(self._on_comment_removed)

    def _rebuild(self):
        for widget in self._widgets.values():
            self._container_layout.removeWidget(widget)
            widget.deleteLater()
        self._widgets.clear()

        for comment in reversed(self._moderator.comments):
            self._insert_widget(comment)
        self._update_empty_label()

    def _insert_widget(self, comment: Comment):
        widget = CommentWidget(comment, self._moderator.translation_available)
        widget.like_clicked.connect(self._moderator.like)
        widget.dislike_clicked.connect(self._moderator.dislike)
        widget.translate_clicked.connect(self._on_translate)
        # Newest first, below the empty-state label
        self._container_layout.insertWidget(1, widget)
        self._widgets[comment.id] = widget

    def _update_empty_label(self):
        self._empty_label.setVisible(not self._widgets)

    def _show_error(self, message: str):
        self._error_label.setText(message)
        self._error_label.setVisible(bool(message))

    @Slot()
    def _on_submit(self):
        try:
            self._moderator.submit(self._author_id, self._input.toPlainText())
        except ValidationError as e:
            self._show_error(str(e))
            return
        self._show_error("")
        self._input.clear()

    @Slot(str, str)
    def _on_translate(self, comment_id: str, target_lang: str):
        try:
            self._moderator.request_translation(comment_id, target_lang)
        except AdvancedMediaError as e:
            self._show_error(str(e))

    @Slot(object)
    def _on_comment_added(self, comment: Comment):
        self._insert_widget(comment)
        self._update_empty_label()

    @Slot(object)
    def _on_comment_updated(self, comment: Comment):
        widget = self._widgets.get(comment.id)
        if widget is not None:
            widget.set_comment(comment)

    @Slot(str)
    def _on_comment_removed(self, comment_id: str):
        widget = self._widgets.pop(comment_id, None)
        if widget is not None:
            self._container_layout.removeWidget(widget)
            widget.deleteLater()
        self._update_empty_label()
