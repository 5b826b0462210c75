"""
Error taxonomy for the ECO lifecycle.

Record-level errors (RecordNotFound, TransitionRejected, StoreError)
propagate to the caller. PartNotFound is per affected-part reference and is
absorbed by AffectedPartsResolver. IllegalTransition is a programming error:
the GUI must only offer actions from permitted_actions().
"""

from __future__ import annotations


class ECOError(Exception):
    """Base class for all ECO lifecycle errors."""


class IllegalTransition(ECOError):
    """An action was requested that the current state does not permit."""

    def __init__(self, state, action) -> None:
        self.state = state
        self.action = action
        super().__init__(
            f"Action {getattr(action, 'value', action)!r} is not permitted "
            f"from state {getattr(state, 'value', state)!r}"
        )


class RecordNotFound(ECOError):
    """The ECO identifier does not resolve to a record."""

    def __init__(self, eco_id: str) -> None:
        self.eco_id = eco_id
        super().__init__(f"ECO {eco_id!r} not found")


class PartNotFound(ECOError):
    """A part identifier does not resolve in the inventory."""

    def __init__(self, ipn: str, reason: str = "Part not found in system") -> None:
        self.ipn = ipn
        self.reason = reason
        super().__init__(f"{ipn}: {reason}")


class TransitionRejected(ECOError):
    """The record store refused a mutation (illegal state, concurrent change, ...)."""

    def __init__(self, eco_id: str, message: str) -> None:
        self.eco_id = eco_id
        self.message = message
        super().__init__(f"{eco_id}: {message}")


class StoreError(ECOError):
    """The record store could not be reached or returned an unusable response."""
