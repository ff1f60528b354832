"""Watch page: video player with quality and plan selection, plus comments."""

from PySide6.QtCore import Qt, Slot
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QSplitter, QPushButton,
    QLabel, QComboBox, QStatusBar, QStyle, QMessageBox, QSizePolicy
)
from PySide6.QtMultimediaWidgets import QVideoWidget

from ..config import Config, DEFAULT_VIDEO_SOURCES, PLANS, get_plan
from ..models import Plan, VideoSource
from ..store import JsonCommentStore
from ..translator import GeminiTranslator
from .comment_panel import CommentPanel
from .engagement_moderator import EngagementModerator
from .media_sink import QtMediaSink
from .playback_controller import PlaybackController, PlaybackState


def format_time(seconds: float) -> str:
    """Format seconds as MM:SS."""
    total = int(seconds)
    return f"{total // 60:02d}:{total % 60:02d}"


class WatchWindow(QMainWindow):
    """
    Composes the playback controller and the comment moderator.

    Layout:
    - Left: Video, transport controls, quality and plan selectors
    - Right: Comment form and list
    - Status bar: Plan and limit status
    """

    def __init__(
        self,
        config: Config | None = None,
        author_id: str | None = None,
        sources: list[VideoSource] | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self._config = config or Config()
        self._author_id = author_id

        self.setWindowTitle("Advanced Media")
        self.setMinimumSize(1100, 700)

        self._sink = QtMediaSink(self)
        self._controller = PlaybackController(
            sources or DEFAULT_VIDEO_SOURCES,
            get_plan(self._config.default_plan_id),
            self._sink,
            self,
        )
        self._moderator = EngagementModerator(
            JsonCommentStore(self._config.comments_path),
            GeminiTranslator(self._config),
            self._config,
            dislike_threshold=self._config.dislike_threshold,
            parent=self,
        )

        self._setup_ui()
        self._connect_signals()
        self._apply_dark_theme()

        self._controller.open()
        self._update_status()

    def _setup_ui(self):
        """Set up the main UI layout."""
        splitter = QSplitter(Qt.Orientation.Horizontal)

        # Player side
        player = QWidget()
        player_layout = QVBoxLayout(player)
        player_layout.setContentsMargins(8, 8, 8, 8)
        player_layout.setSpacing(6)

        self._video_widget = QVideoWidget()
        self._video_widget.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self._video_widget.setMinimumHeight(240)
        self._sink.player.setVideoOutput(self._video_widget)
        player_layout.addWidget(self._video_widget, stretch=1)

        controls = QHBoxLayout()
        controls.setSpacing(8)

        self._play_btn = QPushButton()
        self._play_btn.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_MediaPlay))
        self._play_btn.setFixedWidth(40)
        controls.addWidget(self._play_btn)

        self._stop_btn = QPushButton()
        self._stop_btn.setIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_MediaStop))
        self._stop_btn.setFixedWidth(40)
        controls.addWidget(self._stop_btn)

        self._time_label = QLabel("00:00")
        controls.addWidget(self._time_label)

        controls.addStretch()

        controls.addWidget(QLabel("Quality:"))
        self._quality_combo = QComboBox()
        self._quality_combo.addItems(self._controller.session.qualities)
        controls.addWidget(self._quality_combo)

        controls.addWidget(QLabel("Plan:"))
        self._plan_combo = QComboBox()
        for plan in PLANS:
            self._plan_combo.addItem(plan.name, plan.id)
        self._plan_combo.setCurrentIndex(self._plan_combo.findData(self._controller.plan.id))
        controls.addWidget(self._plan_combo)

        player_layout.addLayout(controls)
        splitter.addWidget(player)

        # Comment side
        self._comment_panel = CommentPanel(self._moderator, self._author_id)
        splitter.addWidget(self._comment_panel)
        splitter.setSizes([700, 400])

        self.setCentralWidget(splitter)

        self._status_bar = QStatusBar()
        self._status_label = QLabel()
        self._status_bar.addWidget(self._status_label)
        self.setStatusBar(self._status_bar)

    def _connect_signals(self):
        """Connect widget and controller signals."""
        self._play_btn.clicked.connect(self._controller.toggle_play)
        self._stop_btn.clicked.connect(self._controller.stop)
        self._quality_combo.currentTextChanged.connect(self._controller.select_quality)
        self._plan_combo.currentIndexChanged.connect(self._on_plan_selected)

        self._sink.position_changed.connect(self._controller.tick)
        self._sink.load_failed.connect(
            lambda message: self._status_bar.showMessage(f"Media error: {message}", 5000)
        )

        self._controller.state_changed.connect(self._on_state_changed)
        self._controller.position_changed.connect(self._on_position_changed)
        self._controller.limit_reached.connect(self._on_limit_reached)

    def _apply_dark_theme(self):
        """Apply dark theme styling."""
        self.setStyleSheet("""
            QMainWindow, QWidget {
                background-color: #1e1e1e;
                color: #fff;
            }
            QPushButton {
                background-color: #3d3d3d;
                color: #fff;
                border: 1px solid #555;
                border-radius: 4px;
                padding: 6px 12px;
            }
            QPushButton:hover {
                background-color: #4d4d4d;
            }
            QPushButton:disabled {
                color: #777;
            }
            QComboBox, QPlainTextEdit {
                background-color: #2d2d2d;
                border: 1px solid #555;
                padding: 4px;
            }
            QStatusBar {
                background-color: #2d2d2d;
            }
        """)

    def _update_status(self):
        plan = self._controller.plan
        if plan.time_limit_seconds is None:
            text = f"Current plan: {plan.name} (unlimited)"
        else:
            text = f"Current plan: {plan.name} ({plan.time_limit_seconds // 60} min limit)."
            if self._controller.session.limit_reached:
                text += " Time limit reached."
        self._status_label.setText(text)

    @Slot(int)
    def _on_plan_selected(self, index: int):
        self._controller.set_plan(get_plan(self._plan_combo.itemData(index)))
        self._update_status()

    @Slot(PlaybackState)
    def _on_state_changed(self, state: PlaybackState):
        icon = (QStyle.StandardPixmap.SP_MediaPause if state == PlaybackState.PLAYING
                else QStyle.StandardPixmap.SP_MediaPlay)
        self._play_btn.setIcon(self.style().standardIcon(icon))
        self._update_status()

    @Slot(float)
    def _on_position_changed(self, seconds: float):
        self._time_label.setText(format_time(seconds))

    @Slot(object)
    def _on_limit_reached(self, plan: Plan):
        QMessageBox.information(
            self,
            "Time Limit Reached",
            f"Your {plan.name} plan allows {plan.time_limit_seconds // 60} minutes of viewing. "
            "Please upgrade for more time.",
        )
