"""
ECODetailController — Application layer orchestrator for the ECO detail view.

Coordinates between:
  - the record store (IECOStore: local database or inventory server)
  - AffectedPartsResolver
  - the ECO state machine

The GUI calls only this controller, never the store directly, for the
detail view. Load sequence:

    fetch ECO ─► resolve affected parts ─► permitted_actions(status) ─► Ready

Every load is tagged with a ticket from a monotonically increasing counter.
A completed load is applied only if its ticket is still the latest one
issued, so a slow load for a previously selected ECO never overwrites the
view of the current one.

Actions are offered from the local state machine but never applied
locally: after the store accepts a transition the record is reloaded,
because approver and timestamps are assigned by the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Union

from eco_manager.config.settings import settings
from eco_manager.core.affected_parts import (
    AffectedPartsResolver,
    PartResolution,
    parse_affected_ipns,
)
from eco_manager.core.exceptions import (
    ECOError,
    IllegalTransition,
    RecordNotFound,
)
from eco_manager.core.record_store import (
    ECODraft,
    ECORecord,
    ECORevisionInfo,
    IECOStore,
)
from eco_manager.core.state_machine import (
    ECOAction,
    ECOStatus,
    Priority,
    is_terminal,
    ordered_actions,
    permitted_actions,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# View model and outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ECODetailViewModel:
    record: ECORecord
    affected_parts: tuple[PartResolution, ...]
    permitted_actions: frozenset[ECOAction]
    revisions: tuple[ECORevisionInfo, ...] = ()

    @property
    def show_affected_parts(self) -> bool:
        """The affected-parts section is omitted entirely when there are no references."""
        return bool(self.affected_parts)

    @property
    def ordered_actions(self) -> list[ECOAction]:
        return ordered_actions(self.permitted_actions)

    @property
    def unresolved_count(self) -> int:
        return sum(1 for p in self.affected_parts if not p.is_resolved)

    @property
    def can_add_revision(self) -> bool:
        return not is_terminal(self.record.status)


@dataclass(frozen=True)
class Loading:
    eco_id: str


@dataclass(frozen=True)
class Ready:
    view_model: ECODetailViewModel


@dataclass(frozen=True)
class NotFound:
    eco_id: str


@dataclass(frozen=True)
class LoadError:
    eco_id: str
    message: str


DetailOutcome = Union[Loading, Ready, NotFound, LoadError]


@dataclass
class ActionResponse:
    success: bool
    action: ECOAction
    record: Optional[ECORecord] = None
    errors: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class ECODetailController:
    """
    Drives one ECO detail view.
    All state changes (outcome, tickets) must happen on one thread; the
    blocking build_outcome()/request_transition() calls are thread-safe
    and may run on worker threads.
    """

    def __init__(
        self,
        store: IECOStore,
        resolver: Optional[AffectedPartsResolver] = None,
        user: Optional[str] = None,
    ) -> None:
        self._store = store
        self._resolver = resolver or AffectedPartsResolver(
            store.lookup_part, max_workers=settings.part_lookup_workers
        )
        self._user = user or settings.default_user
        self._latest_ticket = 0
        self._outcome: Optional[DetailOutcome] = None

    @property
    def store(self) -> IECOStore:
        return self._store

    @property
    def outcome(self) -> Optional[DetailOutcome]:
        return self._outcome

    @property
    def view_model(self) -> Optional[ECODetailViewModel]:
        if isinstance(self._outcome, Ready):
            return self._outcome.view_model
        return None

    # ------------------------------------------------------------------
    # Load sequence
    # ------------------------------------------------------------------

    def begin_load(self, eco_id: str) -> int:
        """Issue a new load ticket; earlier in-flight loads become stale."""
        self._latest_ticket += 1
        self._outcome = Loading(eco_id)
        return self._latest_ticket

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest_ticket

    def build_outcome(self, eco_id: str) -> DetailOutcome:
        """
        Fetch and resolve everything the detail view needs. Blocking.
        Touches no controller state, so it may run on a worker thread.
        """
        try:
            record = self._store.fetch_eco(eco_id)
        except RecordNotFound:
            logger.info("ECO %s not found", eco_id)
            return NotFound(eco_id)
        except ECOError as exc:
            logger.error("Failed to load ECO %s: %s", eco_id, exc)
            return LoadError(eco_id, str(exc))

        affected = self._resolver.resolve(list(record.affected_ipns))
        return Ready(ECODetailViewModel(
            record=record,
            affected_parts=tuple(affected),
            permitted_actions=permitted_actions(record.status),
            revisions=tuple(self._fetch_revisions(eco_id)),
        ))

    def apply(self, ticket: int, outcome: DetailOutcome) -> bool:
        """Install outcome if ticket is still the latest; returns False for stale loads."""
        if not self.is_current(ticket):
            logger.debug("Discarding stale load (ticket %d, latest %d)", ticket, self._latest_ticket)
            return False
        self._outcome = outcome
        return True

    def load(self, eco_id: str) -> DetailOutcome:
        """Synchronous load: begin_load + build_outcome + apply."""
        ticket = self.begin_load(eco_id)
        self.apply(ticket, self.build_outcome(eco_id))
        return self._outcome

    def reload(self) -> Optional[DetailOutcome]:
        eco_id = self._current_eco_id()
        return self.load(eco_id) if eco_id else None

    # ------------------------------------------------------------------
    # Action sequence
    # ------------------------------------------------------------------

    def check_action(self, action: ECOAction | str) -> tuple[str, ECOAction]:
        """
        Validate that action is currently offered. Returns (eco_id, action).

        Raises:
            IllegalTransition: there is no loaded ECO or the action is not
                permitted from its state. Callers must only invoke actions
                taken from view_model.permitted_actions.
        """
        action = ECOAction(action)
        vm = self.view_model
        if vm is None:
            raise IllegalTransition(None, action)
        if action not in vm.permitted_actions:
            raise IllegalTransition(vm.record.status, action)
        return vm.record.id, action

    def request_transition(self, eco_id: str, action: ECOAction) -> ActionResponse:
        """Send the transition to the store. Blocking, thread-safe, no state change."""
        try:
            record = self._store.transition(eco_id, action, self._user)
        except ECOError as exc:
            logger.warning("%s on %s failed: %s", action.value, eco_id, exc)
            return ActionResponse(success=False, action=action, errors=[str(exc)])
        return ActionResponse(success=True, action=action, record=record)

    def perform_action(self, action: ECOAction | str) -> ActionResponse:
        """
        Full action pipeline:
        1. Check the action is permitted from the displayed state
        2. Ask the store to apply it
        3. On success reload from the store; on failure keep the current view
        """
        eco_id, action = self.check_action(action)
        response = self.request_transition(eco_id, action)
        if response.success:
            self.load(eco_id)
        return response

    # ------------------------------------------------------------------
    # Revisions
    # ------------------------------------------------------------------

    def create_revision(
        self,
        changes_summary: str,
        effectivity_date: Optional[str] = None,
        notes: str = "",
    ) -> ECORevisionInfo:
        """
        Append a revision to the displayed ECO and reload it.

        Raises:
            IllegalTransition: no ECO is loaded.
            ValueError: changes_summary is blank.
            ECOError: the store refused or failed (view left unchanged).
        """
        vm = self.view_model
        if vm is None:
            raise IllegalTransition(None, "create revision")
        summary = changes_summary.strip()
        if not summary:
            raise ValueError("A summary of the changes is required")
        revision = self._store.create_revision(
            vm.record.id,
            summary,
            self._user,
            effectivity_date=(effectivity_date or "").strip() or None,
            notes=notes.strip(),
        )
        self.load(vm.record.id)
        return revision

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fetch_revisions(self, eco_id: str) -> list[ECORevisionInfo]:
        # Revision history is supplementary; a failure here must not fail the load.
        try:
            return self._store.list_revisions(eco_id)
        except ECOError as exc:
            logger.warning("Could not load revisions for %s: %s", eco_id, exc)
            return []

    def _current_eco_id(self) -> Optional[str]:
        outcome = self._outcome
        if isinstance(outcome, Ready):
            return outcome.view_model.record.id
        if outcome is not None:
            return outcome.eco_id
        return None


class ECOListController:
    """
    Facade for the ECO list and draft editing.
    Stateless between calls; store errors propagate to the caller.
    """

    def __init__(self, store: IECOStore, user: Optional[str] = None) -> None:
        self._store = store
        self._user = user or settings.default_user

    def list_ecos(self, status: Optional[ECOStatus | str] = None) -> list[ECORecord]:
        return self._store.list_ecos(ECOStatus(status) if status else None)

    def create_eco(self, draft: ECODraft, submit: bool = False) -> ECORecord:
        """Create a draft ECO; optionally open it for review right away."""
        record = self._store.create_eco(_clean_draft(draft), self._user)
        if submit:
            record = self._store.submit_draft(record.id)
        return record

    def update_draft(self, eco_id: str, draft: ECODraft, submit: bool = False) -> ECORecord:
        record = self._store.update_draft(eco_id, _clean_draft(draft))
        if submit:
            record = self._store.submit_draft(eco_id)
        return record


def _clean_draft(draft: ECODraft) -> ECODraft:
    title = draft.title.strip()
    if not title:
        raise ValueError("ECO title is required")
    return ECODraft(
        title=title,
        description=draft.description.strip(),
        reason=draft.reason.strip(),
        priority=Priority(draft.priority).value,
        affected_ipns=parse_affected_ipns(draft.affected_ipns),
        ncr_id=(draft.ncr_id or "").strip() or None,
    )
