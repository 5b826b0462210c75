"""
Application entry point.

Responsibilities:
  1. Configure logging.
  2. Initialize the database when the local store is in use (create tables, seed parts).
  3. Create and show the main window.
  4. Start the Qt event loop.

Keep this file minimal. All initialization logic belongs in its respective module.
"""

import sys

from PyQt6.QtWidgets import QApplication

from eco_manager.config.logging_setup import configure_logging
from eco_manager.config.settings import settings
from eco_manager.data.database import init_db
from eco_manager.gui.main_window import MainWindow


def main() -> int:
    configure_logging()

    if settings.store_backend == "local":
        init_db()

    app = QApplication(sys.argv)
    app.setApplicationName(settings.app_name)
    app.setApplicationVersion(settings.app_version)

    window = MainWindow()
    window.show()

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
