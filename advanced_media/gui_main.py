"""GUI entry point for the watch page."""

import sys

from dotenv import load_dotenv
load_dotenv()  # Load .env file automatically

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from .config import Config
from .gui.watch_window import WatchWindow


def main(author_id: str | None = None, config: Config | None = None):
    """Launch the watch window."""
    # Enable high DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication.instance() or QApplication(sys.argv)
    app.setApplicationName("Advanced Media")
    app.setOrganizationName("AdvancedMedia")

    # Optional logged-in user name as the first argument
    if author_id is None and len(sys.argv) > 1:
        author_id = sys.argv[1]

    window = WatchWindow(config=config, author_id=author_id)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
