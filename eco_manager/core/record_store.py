"""
Abstract base class (interface) for ECO record stores.

Two implementations exist: LocalECOStore (SQLAlchemy/SQLite) and
RemoteECOStore (inventory server REST API). The application layer
(ECODetailController, GUI) calls only this interface, never a specific
backend, so the desktop tool works the same against either.

Records crossing this interface are immutable snapshots; a fresh one is
fetched after every mutation.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Optional

from eco_manager.core.state_machine import ECOAction, ECOStatus


@dataclass(frozen=True)
class ECORecord:
    """Snapshot of one ECO as returned by a record store."""
    id: str
    title: str
    status: ECOStatus
    description: str = ""
    reason: str = ""
    priority: str = "normal"
    created_by: str = ""
    created_at: str = ""
    updated_at: str = ""
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    ncr_id: Optional[str] = None
    affected_ipns: tuple[str, ...] = ()


@dataclass(frozen=True)
class PartMetadata:
    """Descriptive metadata for one inventory part."""
    ipn: str
    description: str
    category: Optional[str] = None
    manufacturer: Optional[str] = None
    mpn: Optional[str] = None


@dataclass(frozen=True)
class ECORevisionInfo:
    """One row of an ECO's revision history."""
    revision: str
    status: str
    changes_summary: str = ""
    created_by: str = ""
    created_at: str = ""
    approved_by: Optional[str] = None
    approved_at: Optional[str] = None
    implemented_by: Optional[str] = None
    implemented_at: Optional[str] = None
    effectivity_date: Optional[str] = None
    notes: str = ""


@dataclass
class ECODraft:
    """Editable fields of an ECO, used for creation and draft edits."""
    title: str
    description: str = ""
    reason: str = ""
    priority: str = "normal"
    affected_ipns: list[str] = field(default_factory=list)
    ncr_id: Optional[str] = None


class IECOStore(abc.ABC):
    """
    Interface for ECO record stores.
    All implementations must be stateless between calls and safe to call
    from worker threads.
    """

    @abc.abstractmethod
    def fetch_eco(self, eco_id: str) -> ECORecord:
        """
        Read one ECO.

        Raises:
            RecordNotFound: eco_id does not exist.
            StoreError: the store could not be reached or returned an unusable response.
        """
        ...

    @abc.abstractmethod
    def lookup_part(self, ipn: str) -> PartMetadata:
        """
        Read one part's metadata.

        Raises:
            PartNotFound: ipn is not in the inventory.
        """
        ...

    @abc.abstractmethod
    def transition(self, eco_id: str, action: ECOAction, user: str) -> ECORecord:
        """
        Apply a lifecycle action and return the persisted record.

        The store validates the action against the stored state itself,
        independent of any check the caller already made.

        Raises:
            RecordNotFound: eco_id does not exist.
            TransitionRejected: the store refused the action.
        """
        ...

    @abc.abstractmethod
    def list_ecos(self, status: Optional[ECOStatus] = None) -> list[ECORecord]:
        """Return ECOs, newest first, optionally filtered by status."""
        ...

    @abc.abstractmethod
    def list_revisions(self, eco_id: str) -> list[ECORevisionInfo]:
        """Return the revision history of an ECO, oldest first."""
        ...

    @abc.abstractmethod
    def create_eco(self, draft: ECODraft, user: str) -> ECORecord:
        """Create a new ECO in state draft (with initial revision A)."""
        ...

    @abc.abstractmethod
    def update_draft(self, eco_id: str, draft: ECODraft) -> ECORecord:
        """
        Overwrite the editable fields of a draft ECO.

        Raises:
            TransitionRejected: the ECO has left draft.
        """
        ...

    @abc.abstractmethod
    def submit_draft(self, eco_id: str) -> ECORecord:
        """
        Move a draft ECO to open for review.

        Raises:
            TransitionRejected: the ECO is not a draft.
        """
        ...

    @abc.abstractmethod
    def create_revision(
        self,
        eco_id: str,
        changes_summary: str,
        user: str,
        effectivity_date: Optional[str] = None,
        notes: str = "",
    ) -> ECORevisionInfo:
        """
        Append the next revision (B, C, ...) to an ECO's history.

        Raises:
            RecordNotFound: eco_id does not exist.
            TransitionRejected: the ECO is rejected or implemented.
        """
        ...

    @abc.abstractmethod
    def get_backend_name(self) -> str:
        """Return human-readable backend name, e.g., 'Local database'."""
        ...
