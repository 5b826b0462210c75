"""
RevisionDialog — modal dialog for recording a new revision of an ECO.

Collects:
  - Summary of the changes (required)
  - Effectivity date, YYYY-MM-DD (optional)
  - Notes (optional)
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)


class RevisionDialog(QDialog):
    """Dialog for entering the details of the next revision of eco_id."""

    def __init__(self, eco_id: str, parent=None) -> None:
        super().__init__(parent)
        self._eco_id = eco_id
        self.setWindowTitle("New Revision")
        self.setMinimumWidth(420)
        self.setModal(True)
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(12)
        layout.setContentsMargins(20, 16, 20, 16)

        header = QLabel(f"New revision of {self._eco_id}")
        header_font = QFont()
        header_font.setBold(True)
        header_font.setPointSize(11)
        header.setFont(header_font)
        layout.addWidget(header)

        form = QFormLayout()
        form.setSpacing(10)
        form.setLabelAlignment(Qt.AlignmentFlag.AlignRight)

        self._summary_edit = QLineEdit()
        self._summary_edit.setPlaceholderText("e.g. Updated BOM for rev B board")
        self._summary_edit.setMinimumWidth(280)
        self._summary_error = QLabel("")
        self._summary_error.setStyleSheet("color: #CC0000; font-size: 11px;")
        form.addRow("Summary *:", self._with_error(self._summary_edit, self._summary_error))

        self._date_edit = QLineEdit()
        self._date_edit.setPlaceholderText("YYYY-MM-DD  (optional)")
        self._date_error = QLabel("")
        self._date_error.setStyleSheet("color: #CC0000; font-size: 11px;")
        form.addRow("Effective:", self._with_error(self._date_edit, self._date_error))

        self._notes_edit = QTextEdit()
        self._notes_edit.setPlaceholderText("Optional")
        self._notes_edit.setFixedHeight(64)
        form.addRow("Notes:", self._notes_edit)

        layout.addLayout(form)

        self._buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        ok_button = self._buttons.button(QDialogButtonBox.StandardButton.Ok)
        ok_button.setText("Create Revision")
        ok_button.setEnabled(False)
        self._buttons.accepted.connect(self._on_accept)
        self._buttons.rejected.connect(self.reject)
        layout.addWidget(self._buttons)

        self._summary_edit.textChanged.connect(self._validate_fields)
        self._date_edit.textChanged.connect(self._validate_fields)

    @staticmethod
    def _with_error(field_widget: QWidget, error_label: QLabel) -> QWidget:
        container = QWidget()
        container_layout = QVBoxLayout(container)
        container_layout.setContentsMargins(0, 0, 0, 0)
        container_layout.setSpacing(2)
        container_layout.addWidget(field_widget)
        container_layout.addWidget(error_label)
        return container

    def _validate_fields(self) -> bool:
        ok = True

        if not self._summary_edit.text().strip():
            self._summary_error.setText("A summary is required.")
            ok = False
        else:
            self._summary_error.setText("")

        raw_date = self._date_edit.text().strip()
        try:
            if raw_date:
                date.fromisoformat(raw_date)
            self._date_error.setText("")
        except ValueError:
            self._date_error.setText("Use the YYYY-MM-DD format.")
            ok = False

        self._buttons.button(QDialogButtonBox.StandardButton.Ok).setEnabled(ok)
        return ok

    def _on_accept(self) -> None:
        if self._validate_fields():
            self.accept()

    def get_data(self) -> tuple[str, Optional[str], str]:
        """Return (changes_summary, effectivity_date or None, notes)."""
        return (
            self._summary_edit.text().strip(),
            self._date_edit.text().strip() or None,
            self._notes_edit.toPlainText().strip(),
        )
