"""
RevisionPanel — displays the revision history of one ECO.

Shows a table of all revisions with their code, status, summary, and who
created / approved / implemented each one and when. A "New revision…"
button emits revision_requested while the ECO can still be revised.
"""

from __future__ import annotations

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from eco_manager.core.record_store import ECORevisionInfo

_COLUMNS = ["Rev", "Status", "Summary", "Created", "Approved", "Implemented"]


def _who_when(user: str | None, when: str | None) -> str:
    if not user and not when:
        return "—"
    return f"{user or '?'}  {(when or '')[:16]}".strip()


class RevisionPanel(QWidget):
    """Read-only revision history table with an optional "New revision…" button."""

    revision_requested = pyqtSignal()

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        self._table = QTableWidget(0, len(_COLUMNS))
        self._table.setHorizontalHeaderLabels(_COLUMNS)
        self._table.verticalHeader().setVisible(False)
        self._table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self._table.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self._table.horizontalHeader().setSectionResizeMode(
            2, QHeaderView.ResizeMode.Stretch
        )
        self._table.setStyleSheet("QTableWidget { border: 1px solid #DDD; font-size: 12px; }")
        layout.addWidget(self._table)

        self._empty_lbl = QLabel("No revisions recorded.")
        self._empty_lbl.setStyleSheet("color: #999; font-size: 12px;")
        layout.addWidget(self._empty_lbl)

        button_row = QHBoxLayout()
        button_row.addStretch()
        self._btn_new = QPushButton("New revision…")
        self._btn_new.setToolTip("Record a new revision of this ECO")
        self._btn_new.clicked.connect(self.revision_requested)
        button_row.addWidget(self._btn_new)
        layout.addLayout(button_row)

    def set_revisions(self, revisions: list[ECORevisionInfo] | tuple[ECORevisionInfo, ...]) -> None:
        """Replace the table contents; newest revision last."""
        self._table.setVisible(bool(revisions))
        self._empty_lbl.setVisible(not revisions)
        self._table.setRowCount(len(revisions))
        for row, rev in enumerate(revisions):
            cells = [
                rev.revision,
                rev.status.title(),
                rev.changes_summary or rev.notes,
                _who_when(rev.created_by, rev.created_at),
                _who_when(rev.approved_by, rev.approved_at),
                _who_when(rev.implemented_by, rev.implemented_at),
            ]
            for col, text in enumerate(cells):
                self._table.setItem(row, col, QTableWidgetItem(text))
        self._table.resizeColumnsToContents()
        self._table.setFixedHeight(
            self._table.horizontalHeader().height() + 4
            + sum(self._table.rowHeight(r) for r in range(len(revisions)))
        )

    def set_can_add(self, enabled: bool) -> None:
        # Rejected and implemented ECOs are closed to new revisions
        self._btn_new.setVisible(enabled)
