"""
ECODialog — modal dialog for creating a new ECO or editing a draft.

Collects:
  - Title (required)
  - Priority (low / normal / high)
  - Description, reason for change (optional)
  - Affected part IPNs, comma- or newline-separated (optional)
  - NCR id (optional link back to a non-conformance report)
  - "Submit for review" checkbox: moves the draft to open on save

Returns the collected data via accepted() signal + get_data().
"""

from __future__ import annotations

import re
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QCheckBox,
    QComboBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLabel,
    QLineEdit,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from eco_manager.core.affected_parts import parse_affected_ipns
from eco_manager.core.record_store import ECODraft, ECORecord
from eco_manager.core.state_machine import Priority

_IPN_PATTERN = re.compile(r"^[A-Za-z0-9\-_.]+$")


class ECODialog(QDialog):
    """Dialog for entering ECO metadata. Pass record to edit an existing draft."""

    def __init__(self, record: Optional[ECORecord] = None, parent=None) -> None:
        super().__init__(parent)
        self._record = record
        self.setWindowTitle("Edit Draft ECO" if record else "New ECO")
        self.setMinimumWidth(480)
        self.setModal(True)
        self._build_ui()
        if record is not None:
            self._fill(record)

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setSpacing(12)
        layout.setContentsMargins(20, 16, 20, 16)

        # Header
        header = QLabel(
            f"Edit draft {self._record.id}" if self._record else "New engineering change order"
        )
        header_font = QFont()
        header_font.setBold(True)
        header_font.setPointSize(11)
        header.setFont(header_font)
        layout.addWidget(header)

        separator = QWidget()
        separator.setFixedHeight(1)
        separator.setStyleSheet("background-color: #DDDDDD;")
        layout.addWidget(separator)

        # Form
        form = QFormLayout()
        form.setSpacing(10)
        form.setLabelAlignment(Qt.AlignmentFlag.AlignRight)

        # Title field (required)
        self._title_edit = QLineEdit()
        self._title_edit.setPlaceholderText("e.g. Replace R12 with 1% tolerance part")
        self._title_edit.setMinimumWidth(300)
        self._title_error = QLabel("")
        self._title_error.setStyleSheet("color: #CC0000; font-size: 11px;")
        form.addRow("Title *:", self._with_error(self._title_edit, self._title_error))

        self._priority_combo = QComboBox()
        for priority in Priority:
            self._priority_combo.addItem(priority.value.title(), priority.value)
        self._priority_combo.setCurrentIndex(
            self._priority_combo.findData(Priority.NORMAL.value)
        )
        form.addRow("Priority:", self._priority_combo)

        self._desc_edit = QTextEdit()
        self._desc_edit.setPlaceholderText("What changes (optional)")
        self._desc_edit.setFixedHeight(72)
        form.addRow("Description:", self._desc_edit)

        self._reason_edit = QTextEdit()
        self._reason_edit.setPlaceholderText("Why the change is needed (optional)")
        self._reason_edit.setFixedHeight(56)
        form.addRow("Reason:", self._reason_edit)

        # Affected parts (optional)
        self._ipns_edit = QTextEdit()
        self._ipns_edit.setPlaceholderText("IPN-001, IPN-002  (comma or one per line)")
        self._ipns_edit.setFixedHeight(56)
        self._ipns_error = QLabel("")
        self._ipns_error.setStyleSheet("color: #CC0000; font-size: 11px;")
        form.addRow("Affected parts:", self._with_error(self._ipns_edit, self._ipns_error))

        self._ncr_edit = QLineEdit()
        self._ncr_edit.setPlaceholderText("e.g. NCR-004  (optional)")
        form.addRow("NCR:", self._ncr_edit)

        self._submit_check = QCheckBox("Submit for review when saved")
        self._submit_check.setToolTip("Moves the ECO from draft to open.")
        form.addRow("", self._submit_check)

        layout.addLayout(form)

        # Buttons
        self._buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        ok_button = self._buttons.button(QDialogButtonBox.StandardButton.Ok)
        ok_button.setText("Save Draft" if self._record else "Create ECO")
        ok_button.setEnabled(False)
        self._buttons.accepted.connect(self._on_accept)
        self._buttons.rejected.connect(self.reject)
        layout.addWidget(self._buttons)

        # Wire up live validation
        self._title_edit.textChanged.connect(self._validate_fields)
        self._ipns_edit.textChanged.connect(self._validate_fields)

    @staticmethod
    def _with_error(field_widget: QWidget, error_label: QLabel) -> QWidget:
        container = QWidget()
        container_layout = QVBoxLayout(container)
        container_layout.setContentsMargins(0, 0, 0, 0)
        container_layout.setSpacing(2)
        container_layout.addWidget(field_widget)
        container_layout.addWidget(error_label)
        return container

    def _fill(self, record: ECORecord) -> None:
        self._title_edit.setText(record.title)
        idx = self._priority_combo.findData(record.priority)
        if idx >= 0:
            self._priority_combo.setCurrentIndex(idx)
        self._desc_edit.setPlainText(record.description)
        self._reason_edit.setPlainText(record.reason)
        self._ipns_edit.setPlainText(", ".join(record.affected_ipns))
        self._ncr_edit.setText(record.ncr_id or "")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _affected_ipns(self) -> list[str]:
        return parse_affected_ipns(self._ipns_edit.toPlainText().replace("\n", ","))

    def _validate_fields(self) -> None:
        ok = True

        title = self._title_edit.text().strip()
        if not title:
            self._title_error.setText("A title is required.")
            ok = False
        else:
            self._title_error.setText("")

        bad = [ipn for ipn in self._affected_ipns() if not _IPN_PATTERN.match(ipn)]
        if bad:
            self._ipns_error.setText(f"Invalid IPN: {', '.join(bad)}")
            ok = False
        else:
            self._ipns_error.setText("")

        self._buttons.button(QDialogButtonBox.StandardButton.Ok).setEnabled(ok)

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------

    def _on_accept(self) -> None:
        self._validate_fields()
        if not self._title_edit.text().strip():
            return
        self.accept()

    def get_data(self) -> tuple[ECODraft, bool]:
        """Return (draft, submit_for_review)."""
        draft = ECODraft(
            title=self._title_edit.text().strip(),
            description=self._desc_edit.toPlainText().strip(),
            reason=self._reason_edit.toPlainText().strip(),
            priority=self._priority_combo.currentData(),
            affected_ipns=self._affected_ipns(),
            ncr_id=self._ncr_edit.text().strip() or None,
        )
        return draft, self._submit_check.isChecked()
