"""
ECODetailView — detail page for the selected ECO.

Pages (QStackedWidget), one per controller outcome:
  0: Loading
  1: Not found
  2: Load error + Retry
  3: Ready ── header (id, title, status badge)
              description / reason
              affected parts (omitted when the ECO references none)
              revision history + "New revision…"
              action bar: one button per permitted action, plus
                          "Edit draft…" while the ECO is a draft

Loads and actions run on QThreads; the controller's ticket check drops any
load that finishes after the user has moved on to another ECO.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import QThread, Qt, pyqtSignal
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from eco_manager.core.affected_parts import PartResolution
from eco_manager.core.eco_controller import (
    ActionResponse,
    DetailOutcome,
    ECODetailController,
    ECODetailViewModel,
    LoadError,
    Loading,
    NotFound,
    Ready,
)
from eco_manager.core.exceptions import ECOError, IllegalTransition
from eco_manager.core.record_store import ECORecord
from eco_manager.core.state_machine import ECOAction, ECOStatus
from eco_manager.gui.labels import ACTION_LABELS, status_color, status_description, status_label
from eco_manager.gui.revision_dialog import RevisionDialog
from eco_manager.gui.revision_panel import RevisionPanel

logger = logging.getLogger(__name__)

_PAGE_LOADING, _PAGE_NOT_FOUND, _PAGE_ERROR, _PAGE_READY = range(4)

_ACTION_STYLES = {
    ECOAction.APPROVE: "#2E7D32",
    ECOAction.IMPLEMENT: "#0070C0",
    ECOAction.REJECT: "#C62828",
}


# ---------------------------------------------------------------------------
# Background workers (keep GUI responsive)
# ---------------------------------------------------------------------------

class _LoadWorker(QThread):
    """Runs ECODetailController.build_outcome() in a background thread."""

    loaded = pyqtSignal(int, object)   # emits ticket, DetailOutcome

    def __init__(self, controller: ECODetailController, ticket: int, eco_id: str) -> None:
        super().__init__()
        self._controller = controller
        self._ticket = ticket
        self._eco_id = eco_id

    def run(self) -> None:
        outcome = self._controller.build_outcome(self._eco_id)
        self.loaded.emit(self._ticket, outcome)


class _ActionWorker(QThread):
    """Runs ECODetailController.request_transition() in a background thread."""

    completed = pyqtSignal(object)   # emits ActionResponse

    def __init__(self, controller: ECODetailController, eco_id: str, action: ECOAction) -> None:
        super().__init__()
        self._controller = controller
        self._eco_id = eco_id
        self._action = action

    def run(self) -> None:
        self.completed.emit(self._controller.request_transition(self._eco_id, self._action))


# ---------------------------------------------------------------------------
# Simple pages
# ---------------------------------------------------------------------------

def _centered_page(text: str, style: str) -> tuple[QWidget, QLabel]:
    page = QWidget()
    layout = QVBoxLayout(page)
    layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
    label = QLabel(text)
    label.setStyleSheet(style)
    label.setAlignment(Qt.AlignmentFlag.AlignCenter)
    label.setWordWrap(True)
    layout.addWidget(label)
    return page, label


def _section_title(text: str) -> QLabel:
    label = QLabel(text)
    font = QFont()
    font.setBold(True)
    font.setPointSize(10)
    label.setFont(font)
    label.setContentsMargins(0, 8, 0, 2)
    return label


def _part_row(part: PartResolution) -> QWidget:
    row = QFrame()
    row.setStyleSheet(
        "QFrame { background: #FAFAFA; border: 1px solid #EEE; border-radius: 4px; }"
    )
    layout = QHBoxLayout(row)
    layout.setContentsMargins(8, 4, 8, 4)

    ipn = QLabel(part.ipn)
    ipn.setFont(QFont("monospace"))
    ipn.setMinimumWidth(110)
    layout.addWidget(ipn)

    if part.is_resolved:
        desc = QLabel(part.description)
        desc.setStyleSheet("color: #333; border: none;")
    else:
        desc = QLabel(f"Not Found  ({part.reason})")
        desc.setStyleSheet("color: #C62828; font-weight: bold; border: none;")
    layout.addWidget(desc, 1)
    return row


# ---------------------------------------------------------------------------
# Ready page
# ---------------------------------------------------------------------------

class _ReadyPage(QScrollArea):

    action_requested = pyqtSignal(str)      # emits ECOAction value
    edit_requested = pyqtSignal()
    revision_requested = pyqtSignal()

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self.setWidgetResizable(True)
        self.setFrameShape(QFrame.Shape.NoFrame)
        self._body = QWidget()
        self.setWidget(self._body)
        self._layout = QVBoxLayout(self._body)
        self._layout.setContentsMargins(20, 16, 20, 16)
        self._layout.setSpacing(6)

        # Header
        header = QHBoxLayout()
        self._id_lbl = QLabel()
        self._id_lbl.setFont(QFont("monospace", 11))
        self._id_lbl.setStyleSheet("color: #666;")
        self._title_lbl = QLabel()
        title_font = QFont()
        title_font.setBold(True)
        title_font.setPointSize(14)
        self._title_lbl.setFont(title_font)
        self._title_lbl.setWordWrap(True)
        self._badge = QLabel()
        header.addWidget(self._id_lbl)
        header.addWidget(self._title_lbl, 1)
        header.addWidget(self._badge)
        self._layout.addLayout(header)

        self._status_hint = QLabel()
        self._status_hint.setStyleSheet("color: #888; font-size: 11px;")
        self._layout.addWidget(self._status_hint)

        self._info_lbl = QLabel()
        self._info_lbl.setStyleSheet(
            "background: #F0F4FF; border-radius: 6px; padding: 8px 12px; font-size: 12px;"
        )
        self._info_lbl.setWordWrap(True)
        self._layout.addWidget(self._info_lbl)

        self._layout.addWidget(_section_title("Description"))
        self._desc_lbl = QLabel()
        self._desc_lbl.setWordWrap(True)
        self._layout.addWidget(self._desc_lbl)

        self._layout.addWidget(_section_title("Reason for change"))
        self._reason_lbl = QLabel()
        self._reason_lbl.setWordWrap(True)
        self._layout.addWidget(self._reason_lbl)

        # Affected parts (whole section hidden when empty)
        self._parts_section = QWidget()
        parts_layout = QVBoxLayout(self._parts_section)
        parts_layout.setContentsMargins(0, 0, 0, 0)
        parts_layout.setSpacing(4)
        self._parts_title = _section_title("Affected parts")
        parts_layout.addWidget(self._parts_title)
        self._parts_list = QVBoxLayout()
        self._parts_list.setSpacing(3)
        parts_layout.addLayout(self._parts_list)
        self._layout.addWidget(self._parts_section)

        self._layout.addWidget(_section_title("Revision history"))
        self._revisions = RevisionPanel()
        self._revisions.revision_requested.connect(self.revision_requested)
        self._layout.addWidget(self._revisions)

        self._layout.addStretch()

        # Action bar at bottom
        action_bar = QWidget()
        action_bar.setStyleSheet("background-color: #F7F7F7; border-top: 1px solid #DDD;")
        self._action_layout = QHBoxLayout(action_bar)
        self._action_layout.setContentsMargins(16, 8, 16, 8)
        self._action_layout.setSpacing(8)
        self._action_status = QLabel("")
        self._action_status.setStyleSheet("color: #888; font-size: 11px;")
        self._action_layout.addWidget(self._action_status)
        self._action_layout.addStretch()
        self._layout.addWidget(action_bar)
        self._buttons: list[QPushButton] = []

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def show_view_model(self, vm: ECODetailViewModel) -> None:
        record = vm.record
        self._id_lbl.setText(record.id)
        self._title_lbl.setText(record.title)
        color = status_color(record.status)
        self._badge.setText(status_label(record.status))
        self._badge.setStyleSheet(
            f"background-color: {color}; color: white; border-radius: 8px; "
            "padding: 3px 10px; font-weight: bold;"
        )
        self._status_hint.setText(status_description(record.status))
        self._info_lbl.setText(_info_html(record))
        self._desc_lbl.setText(record.description or "—")
        self._reason_lbl.setText(record.reason or "—")

        self._show_parts(vm)
        self._revisions.set_revisions(vm.revisions)
        self._revisions.set_can_add(vm.can_add_revision)

        self._show_actions(vm)

    def set_busy(self, action: ECOAction | None) -> None:
        """Disable all buttons while an action is in flight."""
        for btn in self._buttons:
            btn.setEnabled(action is None)
        self._action_status.setText(ACTION_LABELS[action][1] if action else "")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _show_parts(self, vm: ECODetailViewModel) -> None:
        while self._parts_list.count():
            item = self._parts_list.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self._parts_section.setVisible(vm.show_affected_parts)
        if not vm.show_affected_parts:
            return
        title = f"Affected parts ({len(vm.affected_parts)})"
        if vm.unresolved_count:
            title += f"  ·  {vm.unresolved_count} not found"
        self._parts_title.setText(title)
        for part in vm.affected_parts:
            self._parts_list.addWidget(_part_row(part))

    def _show_actions(self, vm: ECODetailViewModel) -> None:
        for btn in self._buttons:
            self._action_layout.removeWidget(btn)
            btn.deleteLater()
        self._buttons = []

        if vm.record.status == ECOStatus.DRAFT:
            btn = QPushButton("Edit draft…")
            btn.setMinimumWidth(120)
            btn.clicked.connect(self.edit_requested)
            self._add_button(btn)

        for action in vm.ordered_actions:
            btn = QPushButton(ACTION_LABELS[action][0])
            btn.setMinimumWidth(140)
            btn.setStyleSheet(
                f"QPushButton:enabled {{ background-color: {_ACTION_STYLES[action]}; "
                "color: white; border-radius: 4px; font-weight: bold; padding: 6px 12px; }} "
                "QPushButton:disabled { background-color: #CCC; color: #888; "
                "border-radius: 4px; padding: 6px 12px; }"
            )
            btn.clicked.connect(lambda _checked, a=action: self.action_requested.emit(a.value))
            self._add_button(btn)

        self._action_status.setText("" if self._buttons else "No further actions available.")

    def _add_button(self, btn: QPushButton) -> None:
        self._action_layout.addWidget(btn)
        self._buttons.append(btn)


def _info_html(record: ECORecord) -> str:
    rows = [
        ("Priority", record.priority.title()),
        ("Created by", record.created_by or "—"),
        ("Created", record.created_at or "—"),
        ("Updated", record.updated_at or "—"),
    ]
    if record.approved_by:
        rows.append(("Approved by", record.approved_by))
    if record.approved_at:
        rows.append(("Approved", record.approved_at))
    if record.ncr_id:
        rows.append(("NCR", record.ncr_id))
    return "<br>".join(f"<b>{label}:</b> {value}" for label, value in rows)


# ---------------------------------------------------------------------------
# ECODetailView
# ---------------------------------------------------------------------------

class ECODetailView(QWidget):
    """
    Right-hand content area. Signals:
      record_changed(eco_id): an action succeeded; the list should refresh.
      edit_requested(record): user wants to edit the displayed draft.
    """

    record_changed = pyqtSignal(str)
    edit_requested = pyqtSignal(object)

    def __init__(self, controller: ECODetailController, parent=None) -> None:
        super().__init__(parent)
        self._controller = controller
        self._workers: set[QThread] = set()
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._stack = QStackedWidget()
        layout.addWidget(self._stack)

        page, self._loading_lbl = _centered_page(
            "Loading…", "color: #666; font-size: 14px;"
        )
        self._stack.addWidget(page)

        page, self._not_found_lbl = _centered_page(
            "ECO not found.", "color: #666; font-size: 14px;"
        )
        self._stack.addWidget(page)

        error_page = QWidget()
        error_layout = QVBoxLayout(error_page)
        error_layout.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._error_lbl = QLabel()
        self._error_lbl.setStyleSheet("color: #C62828; font-size: 13px;")
        self._error_lbl.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._error_lbl.setWordWrap(True)
        self._error_lbl.setMaximumWidth(480)
        btn_retry = QPushButton("Retry")
        btn_retry.setMaximumWidth(120)
        btn_retry.clicked.connect(self.reload)
        error_layout.addWidget(self._error_lbl)
        error_layout.addWidget(btn_retry, alignment=Qt.AlignmentFlag.AlignCenter)
        self._stack.addWidget(error_page)

        self._ready_page = _ReadyPage()
        self._ready_page.action_requested.connect(self._on_action)
        self._ready_page.edit_requested.connect(self._on_edit)
        self._ready_page.revision_requested.connect(self._on_new_revision)
        self._stack.addWidget(self._ready_page)

    # ------------------------------------------------------------------
    # Public
    # ------------------------------------------------------------------

    def load(self, eco_id: str) -> None:
        """Start loading eco_id; any earlier load still running becomes stale."""
        ticket = self._controller.begin_load(eco_id)
        self._show(self._controller.outcome)
        worker = _LoadWorker(self._controller, ticket, eco_id)
        worker.loaded.connect(self._on_loaded)
        self._start(worker)

    def reload(self) -> None:
        outcome = self._controller.outcome
        if isinstance(outcome, Ready):
            self.load(outcome.view_model.record.id)
        elif outcome is not None:
            self.load(outcome.eco_id)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_loaded(self, ticket: int, outcome: DetailOutcome) -> None:
        if self._controller.apply(ticket, outcome):
            self._show(outcome)

    def _on_action(self, action_value: str) -> None:
        try:
            eco_id, action = self._controller.check_action(action_value)
        except IllegalTransition as exc:
            logger.error("Refusing action from stale view: %s", exc)
            QMessageBox.warning(self, "Action not available", str(exc))
            return

        self._ready_page.set_busy(action)
        worker = _ActionWorker(self._controller, eco_id, action)
        worker.completed.connect(self._on_action_finished)
        self._start(worker)

    def _on_action_finished(self, response: ActionResponse) -> None:
        self._ready_page.set_busy(None)
        if response.success:
            eco_id = response.record.id if response.record else None
            self.reload()
            if eco_id:
                self.record_changed.emit(eco_id)
            return
        # Failed action: keep showing the current record
        error_text = "\n".join(response.errors) or "Unknown error."
        QMessageBox.critical(
            self, "Action failed",
            f"Could not {response.action.value} the ECO:\n\n{error_text}",
        )

    def _on_edit(self) -> None:
        vm = self._controller.view_model
        if vm is not None:
            self.edit_requested.emit(vm.record)

    def _on_new_revision(self) -> None:
        vm = self._controller.view_model
        if vm is None:
            return
        dialog = RevisionDialog(vm.record.id, parent=self)
        if dialog.exec() != RevisionDialog.DialogCode.Accepted:
            return
        summary, effectivity_date, notes = dialog.get_data()
        try:
            revision = self._controller.create_revision(summary, effectivity_date, notes)
        except (ECOError, ValueError) as exc:
            logger.error("Revision of %s failed: %s", vm.record.id, exc)
            QMessageBox.critical(self, "Revision failed", str(exc))
            return
        logger.info("Revision %s recorded for %s", revision.revision, vm.record.id)
        self._show(self._controller.outcome)
        self.record_changed.emit(vm.record.id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _show(self, outcome: DetailOutcome | None) -> None:
        if isinstance(outcome, Loading):
            self._loading_lbl.setText(f"Loading {outcome.eco_id}…")
            self._stack.setCurrentIndex(_PAGE_LOADING)
        elif isinstance(outcome, NotFound):
            self._not_found_lbl.setText(f"ECO {outcome.eco_id} was not found.")
            self._stack.setCurrentIndex(_PAGE_NOT_FOUND)
        elif isinstance(outcome, LoadError):
            self._error_lbl.setText(
                f"Could not load {outcome.eco_id}:\n\n{outcome.message}"
            )
            self._stack.setCurrentIndex(_PAGE_ERROR)
        elif isinstance(outcome, Ready):
            self._ready_page.show_view_model(outcome.view_model)
            self._stack.setCurrentIndex(_PAGE_READY)

    def _start(self, worker: QThread) -> None:
        # Qt must not destroy a QThread that is still running
        self._workers.add(worker)
        worker.finished.connect(lambda w=worker: self._workers.discard(w))
        worker.start()
