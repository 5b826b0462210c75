"""
ECO lifecycle state machine.

    draft ──reject──────────────┐
      │                         ▼
      └─(submit: drafting)─► open ──reject──► rejected
                              │
                           approve
                              ▼
                          approved ──implement──► implemented

The transition table is the single source of truth: permitted_actions()
and apply_transition() are both plain lookups into it. Nothing here
performs I/O; persisting the new state and stamping the approver is the
record store's job. Leaving draft for open is a drafting edit owned by
the record store (submit_draft), not an action of this table.
"""

from __future__ import annotations

from enum import Enum

from eco_manager.core.exceptions import IllegalTransition


class ECOStatus(str, Enum):
    DRAFT = "draft"
    OPEN = "open"
    APPROVED = "approved"
    REJECTED = "rejected"
    IMPLEMENTED = "implemented"


class ECOAction(str, Enum):
    APPROVE = "approve"
    IMPLEMENT = "implement"
    REJECT = "reject"


class Priority(str, Enum):
    """Display-only; never consulted by the transition table."""
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


# (state, action) -> resulting state
_TRANSITIONS: dict[tuple[ECOStatus, ECOAction], ECOStatus] = {
    (ECOStatus.DRAFT, ECOAction.REJECT): ECOStatus.REJECTED,
    (ECOStatus.OPEN, ECOAction.APPROVE): ECOStatus.APPROVED,
    (ECOStatus.OPEN, ECOAction.REJECT): ECOStatus.REJECTED,
    (ECOStatus.APPROVED, ECOAction.IMPLEMENT): ECOStatus.IMPLEMENTED,
}

# Order in which actions are presented to the user
ACTION_DISPLAY_ORDER: tuple[ECOAction, ...] = (
    ECOAction.APPROVE,
    ECOAction.IMPLEMENT,
    ECOAction.REJECT,
)


def permitted_actions(state: ECOStatus | str) -> frozenset[ECOAction]:
    """Actions legal from state. Terminal states return an empty set."""
    state = ECOStatus(state)
    return frozenset(action for (src, action) in _TRANSITIONS if src == state)


def apply_transition(state: ECOStatus | str, action: ECOAction | str) -> ECOStatus:
    """
    Resulting state of applying action to state.

    Raises:
        IllegalTransition: action is not in permitted_actions(state).
        ValueError: state or action is not a known value.
    """
    state = ECOStatus(state)
    action = ECOAction(action)
    try:
        return _TRANSITIONS[(state, action)]
    except KeyError:
        raise IllegalTransition(state, action) from None


def is_terminal(state: ECOStatus | str) -> bool:
    return not permitted_actions(state)


def ordered_actions(actions) -> list[ECOAction]:
    """Sort a set of actions into the stable display order."""
    return [a for a in ACTION_DISPLAY_ORDER if a in actions]
