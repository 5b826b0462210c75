"""
ECOListWidget — sidebar list of ECOs.

Shows ECOs newest first in a QTreeWidget (id, title, status) with a status
filter combo on top. Emits eco_selected(eco_id) when the user clicks a row
and new_eco_requested() from the "New ECO" button.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QBrush, QColor, QFont
from PyQt6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from eco_manager.core.eco_controller import ECOListController
from eco_manager.core.exceptions import ECOError
from eco_manager.core.state_machine import ECOStatus
from eco_manager.gui.labels import status_color, status_label

logger = logging.getLogger(__name__)


class ECOListWidget(QWidget):
    """
    Sidebar ECO browser.
    Signal eco_selected emits the ECO id (str) on click.
    """

    eco_selected = pyqtSignal(str)        # emits eco_id
    new_eco_requested = pyqtSignal()

    def __init__(self, controller: ECOListController, parent=None) -> None:
        super().__init__(parent)
        self._controller = controller
        self._build_ui()

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        title = QLabel("Engineering Change Orders")
        title_font = QFont()
        title_font.setBold(True)
        title_font.setPointSize(10)
        title.setFont(title_font)
        title.setContentsMargins(8, 8, 8, 4)

        filter_row = QHBoxLayout()
        filter_row.setContentsMargins(8, 0, 8, 0)
        self._status_filter = QComboBox()
        self._status_filter.addItem("All statuses", None)
        for status in ECOStatus:
            self._status_filter.addItem(status_label(status), status.value)
        self._status_filter.currentIndexChanged.connect(lambda _i: self.refresh())

        self._btn_new = QPushButton("New ECO…")
        self._btn_new.clicked.connect(self.new_eco_requested)
        filter_row.addWidget(self._status_filter, 1)
        filter_row.addWidget(self._btn_new)

        self._tree = QTreeWidget()
        self._tree.setColumnCount(3)
        self._tree.setHeaderLabels(["ID", "Title", "Status"])
        self._tree.setRootIsDecorated(False)
        self._tree.setMinimumWidth(260)
        self._tree.setStyleSheet("""
            QTreeWidget {
                border: none;
                background-color: #F5F5F5;
                font-size: 13px;
            }
            QTreeWidget::item {
                padding: 4px 6px;
            }
            QTreeWidget::item:selected {
                background-color: #0070C0;
                color: white;
            }
            QTreeWidget::item:hover:!selected {
                background-color: #DDEEFF;
            }
        """)
        self._tree.itemClicked.connect(self._on_item_clicked)

        self._message = QLabel("")
        self._message.setStyleSheet("color: #CC0000; font-size: 11px;")
        self._message.setContentsMargins(8, 0, 8, 4)
        self._message.setWordWrap(True)

        layout.addWidget(title)
        layout.addLayout(filter_row)
        layout.addWidget(self._tree)
        layout.addWidget(self._message)

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Reload ECOs from the store, keeping the current filter."""
        status = self._status_filter.currentData()
        try:
            records = self._controller.list_ecos(status)
        except ECOError as exc:
            logger.error("Could not list ECOs: %s", exc)
            self._message.setText(f"Could not load ECOs: {exc}")
            return

        self._message.setText("" if records else "No ECOs found.")
        self._tree.clear()
        for record in records:
            item = QTreeWidgetItem([record.id, record.title, status_label(record.status)])
            item.setData(0, Qt.ItemDataRole.UserRole, record.id)
            item.setToolTip(1, record.title)
            item.setForeground(2, QBrush(QColor(status_color(record.status))))
            mono = QFont("monospace")
            item.setFont(0, mono)
            self._tree.addTopLevelItem(item)
        self._tree.resizeColumnToContents(0)

    def select(self, eco_id: str) -> None:
        """Highlight the row for eco_id without emitting eco_selected."""
        for idx in range(self._tree.topLevelItemCount()):
            item = self._tree.topLevelItem(idx)
            if item.data(0, Qt.ItemDataRole.UserRole) == eco_id:
                self._tree.setCurrentItem(item)
                return

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_item_clicked(self, item: QTreeWidgetItem, column: int) -> None:
        eco_id = item.data(0, Qt.ItemDataRole.UserRole)
        if eco_id:
            self.eco_selected.emit(eco_id)
