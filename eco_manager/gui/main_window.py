"""
MainWindow — top-level application window.

Layout:
  ┌─ Sidebar ──────┐ ┌─ Content (QStackedWidget) ──────────────────────────┐
  │ ECOListWidget  │ │ Page 0: Welcome screen                              │
  │  [filter][New] │ │ Page 1: ECODetailView                               │
  │  ECO-003 ...   │ │   header · description · affected parts ·           │
  │  ECO-002 ...   │ │   revisions · [Approve] [Implement] [Reject]        │
  └────────────────┘ └─────────────────────────────────────────────────────┘
  └─ Status bar (record store in use) ──────────────────────────────────────┘

Workflow:
  1. Click an ECO in the sidebar
  2. Page 1 loads it through ECODetailController (background thread)
  3. Click an action button → store applies the transition → view reloads
  4. "New ECO…" / "Edit draft…" → ECODialog → ECOListController
"""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QAction, QFont, QKeySequence
from PyQt6.QtWidgets import (
    QLabel,
    QMainWindow,
    QMessageBox,
    QSplitter,
    QStackedWidget,
    QStatusBar,
    QVBoxLayout,
    QWidget,
)

from eco_manager.config.settings import settings
from eco_manager.core.eco_controller import ECODetailController, ECOListController
from eco_manager.core.exceptions import ECOError
from eco_manager.core.record_store import ECORecord, IECOStore
from eco_manager.core.store_factory import create_store
from eco_manager.gui.eco_detail_view import ECODetailView
from eco_manager.gui.eco_dialog import ECODialog
from eco_manager.gui.eco_list_widget import ECOListWidget

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Welcome page
# ---------------------------------------------------------------------------

class _WelcomePage(QWidget):
    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.setSpacing(16)

        icon_lbl = QLabel("📋")
        icon_font = QFont()
        icon_font.setPointSize(48)
        icon_lbl.setFont(icon_font)
        icon_lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)

        title = QLabel(settings.app_name)
        title_font = QFont()
        title_font.setBold(True)
        title_font.setPointSize(18)
        title.setFont(title_font)
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)

        subtitle = QLabel("Select an ECO from the list to review it.")
        subtitle.setStyleSheet("color: #666; font-size: 14px;")
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)

        hint = QLabel(
            "Approve, implement or reject ECOs from the detail view. "
            "Use File → New ECO to draft a new one."
        )
        hint.setStyleSheet(
            "color: #999; font-size: 12px; "
            "background: #F0F4FF; border-radius: 6px; padding: 10px 16px;"
        )
        hint.setAlignment(Qt.AlignmentFlag.AlignCenter)
        hint.setWordWrap(True)
        hint.setMaximumWidth(480)

        layout.addWidget(icon_lbl)
        layout.addWidget(title)
        layout.addWidget(subtitle)
        layout.addWidget(hint)


# ---------------------------------------------------------------------------
# MainWindow
# ---------------------------------------------------------------------------

class MainWindow(QMainWindow):

    def __init__(self, store: Optional[IECOStore] = None, parent=None) -> None:
        super().__init__(parent)
        self._store = store or create_store()
        self._list_controller = ECOListController(self._store)
        self._detail_controller = ECODetailController(self._store)
        self.setWindowTitle(settings.app_name)
        self.setMinimumSize(1100, 720)
        self._build_ui()
        self._build_menu()
        self._eco_list.refresh()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        central = QWidget()
        self.setCentralWidget(central)
        root_layout = QVBoxLayout(central)
        root_layout.setContentsMargins(0, 0, 0, 0)
        root_layout.setSpacing(0)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.setHandleWidth(1)
        splitter.setStyleSheet("QSplitter::handle { background-color: #DDDDDD; }")
        root_layout.addWidget(splitter)

        # Left: ECO list sidebar
        self._eco_list = ECOListWidget(self._list_controller)
        self._eco_list.setMaximumWidth(420)
        self._eco_list.setStyleSheet("background-color: #F5F5F5;")
        self._eco_list.eco_selected.connect(self._on_eco_selected)
        self._eco_list.new_eco_requested.connect(self._on_new_eco)
        splitter.addWidget(self._eco_list)

        # Right: QStackedWidget
        self._stack = QStackedWidget()
        splitter.addWidget(self._stack)

        self._stack.addWidget(_WelcomePage())

        self._detail = ECODetailView(self._detail_controller)
        self._detail.record_changed.connect(self._on_record_changed)
        self._detail.edit_requested.connect(self._on_edit_draft)
        self._stack.addWidget(self._detail)

        splitter.setSizes([340, 760])
        splitter.setCollapsible(0, False)
        splitter.setCollapsible(1, False)

        # Status bar
        self._status_bar = QStatusBar(self)
        self.setStatusBar(self._status_bar)
        self._backend_lbl = QLabel(f"Store: {self._store.get_backend_name()}")
        self._backend_lbl.setStyleSheet("color: #666; padding-right: 8px;")
        self._status_bar.addPermanentWidget(self._backend_lbl)
        self._status_bar.showMessage("Ready. Select an ECO to begin.")

    def _build_menu(self) -> None:
        menu_bar = self.menuBar()

        # File
        file_menu = menu_bar.addMenu("&File")

        act_new = QAction("&New ECO…", self)
        act_new.setShortcut(QKeySequence("Ctrl+N"))
        act_new.setStatusTip("Draft a new engineering change order.")
        act_new.triggered.connect(self._on_new_eco)
        file_menu.addAction(act_new)

        file_menu.addSeparator()

        act_quit = QAction("&Quit", self)
        act_quit.setShortcut(QKeySequence("Ctrl+Q"))
        act_quit.triggered.connect(self.close)
        file_menu.addAction(act_quit)

        # View
        view_menu = menu_bar.addMenu("&View")
        act_refresh = QAction("&Refresh", self)
        act_refresh.setShortcut(QKeySequence("F5"))
        act_refresh.triggered.connect(self._on_refresh)
        view_menu.addAction(act_refresh)

        # Help
        help_menu = menu_bar.addMenu("&Help")
        act_about = QAction("&About…", self)
        act_about.triggered.connect(self._on_about)
        help_menu.addAction(act_about)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_eco_selected(self, eco_id: str) -> None:
        self._detail.load(eco_id)
        self._stack.setCurrentIndex(1)
        self._status_bar.showMessage(f"Selected {eco_id}")

    def _on_record_changed(self, eco_id: str) -> None:
        self._eco_list.refresh()
        self._eco_list.select(eco_id)
        self._status_bar.showMessage(f"{eco_id} updated.")

    def _on_refresh(self) -> None:
        self._eco_list.refresh()
        if self._stack.currentIndex() == 1:
            self._detail.reload()

    def _on_new_eco(self) -> None:
        dlg = ECODialog(parent=self)
        if dlg.exec() != dlg.DialogCode.Accepted:
            return
        draft, submit = dlg.get_data()
        try:
            record = self._list_controller.create_eco(draft, submit=submit)
        except (ECOError, ValueError) as exc:
            logger.error("Could not create ECO: %s", exc)
            QMessageBox.critical(self, "Error", f"Could not create the ECO:\n\n{exc}")
            return
        self._after_save(record, "created")

    def _on_edit_draft(self, record: ECORecord) -> None:
        dlg = ECODialog(record=record, parent=self)
        if dlg.exec() != dlg.DialogCode.Accepted:
            return
        draft, submit = dlg.get_data()
        try:
            updated = self._list_controller.update_draft(record.id, draft, submit=submit)
        except (ECOError, ValueError) as exc:
            logger.error("Could not update %s: %s", record.id, exc)
            QMessageBox.critical(self, "Error", f"Could not save {record.id}:\n\n{exc}")
            return
        self._after_save(updated, "saved")

    def _after_save(self, record: ECORecord, verb: str) -> None:
        self._eco_list.refresh()
        self._eco_list.select(record.id)
        self._on_eco_selected(record.id)
        self._status_bar.showMessage(f"{record.id} {verb}.")

    def _on_about(self) -> None:
        QMessageBox.about(
            self,
            f"About {settings.app_name}",
            f"<b>{settings.app_name}</b><br>"
            f"Version {settings.app_version}<br><br>"
            "Engineering change order review and approval.<br>"
            f"Record store: {self._store.get_backend_name()}<br><br>"
            f"User: {settings.default_user}",
        )
