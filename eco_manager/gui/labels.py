"""
Human-readable labels and colors shared by the ECO widgets.
"""

from __future__ import annotations

from eco_manager.core.state_machine import ECOAction, ECOStatus

# status -> (label, color, description)
STATUS_LABELS: dict[ECOStatus, tuple[str, str, str]] = {
    ECOStatus.DRAFT: (
        "Draft", "#616161",
        "ECO is being prepared and not yet submitted for review",
    ),
    ECOStatus.OPEN: (
        "Open", "#1565C0",
        "ECO is submitted and awaiting approval",
    ),
    ECOStatus.APPROVED: (
        "Approved", "#2E7D32",
        "ECO has been approved and can be implemented",
    ),
    ECOStatus.IMPLEMENTED: (
        "Implemented", "#1B5E20",
        "ECO changes have been implemented and are complete",
    ),
    ECOStatus.REJECTED: (
        "Rejected", "#C62828",
        "ECO was rejected and will not be implemented",
    ),
}

# action -> (button text, in-progress text)
ACTION_LABELS: dict[ECOAction, tuple[str, str]] = {
    ECOAction.APPROVE: ("✓  Approve ECO", "Approving…"),
    ECOAction.IMPLEMENT: ("⚙  Implement ECO", "Implementing…"),
    ECOAction.REJECT: ("✕  Reject ECO", "Rejecting…"),
}


def status_label(status: ECOStatus) -> str:
    return STATUS_LABELS[status][0]


def status_color(status: ECOStatus) -> str:
    return STATUS_LABELS[status][1]


def status_description(status: ECOStatus) -> str:
    return STATUS_LABELS[status][2]
