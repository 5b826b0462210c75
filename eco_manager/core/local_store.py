"""
LocalECOStore — IECOStore backed by the local SQLite database.

Each call opens its own session through get_session(), so the store is
stateless and may be used from QThread workers and the part-lookup pool.
SQLAlchemy failures (locked database, I/O errors) surface as StoreError.
Lifecycle transitions are re-validated against the stored status with the
state machine before anything is written; an illegal request is refused
with TransitionRejected.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from eco_manager.core.affected_parts import format_affected_ipns, parse_affected_ipns
from eco_manager.core.exceptions import (
    IllegalTransition,
    PartNotFound,
    RecordNotFound,
    StoreError,
    TransitionRejected,
)
from eco_manager.core.record_store import (
    ECODraft,
    ECORecord,
    ECORevisionInfo,
    IECOStore,
    PartMetadata,
)
from eco_manager.core.state_machine import (
    ECOAction,
    ECOStatus,
    Priority,
    apply_transition,
    is_terminal,
)
from eco_manager.data.database import get_session
from eco_manager.data.models import ECO, ECORevision, Part
from eco_manager.data.repositories import (
    ECORepository,
    ECORevisionRepository,
    PartRepository,
)

logger = logging.getLogger(__name__)


@contextmanager
def _store_session() -> Generator[Session, None, None]:
    """get_session() with database failures reported as StoreError."""
    try:
        with get_session() as session:
            yield session
    except SQLAlchemyError as exc:
        logger.error("Local database error: %s", exc)
        raise StoreError(f"Local database error: {exc}") from exc


class LocalECOStore(IECOStore):

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_eco(self, eco_id: str) -> ECORecord:
        with _store_session() as session:
            eco = ECORepository(session).get_by_id(eco_id)
            if eco is None:
                raise RecordNotFound(eco_id)
            return _to_record(eco)

    def lookup_part(self, ipn: str) -> PartMetadata:
        with _store_session() as session:
            part = PartRepository(session).get_by_ipn(ipn)
            if part is None:
                raise PartNotFound(ipn)
            return _to_part(part)

    def list_ecos(self, status: Optional[ECOStatus] = None) -> list[ECORecord]:
        with _store_session() as session:
            status_value = ECOStatus(status).value if status else None
            return [_to_record(e) for e in ECORepository(session).get_all(status_value)]

    def list_revisions(self, eco_id: str) -> list[ECORevisionInfo]:
        with _store_session() as session:
            return [
                _to_revision(r)
                for r in ECORevisionRepository(session).get_by_eco(eco_id)
            ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def transition(self, eco_id: str, action: ECOAction, user: str) -> ECORecord:
        action = ECOAction(action)
        with _store_session() as session:
            repo = ECORepository(session)
            eco = repo.get_by_id(eco_id)
            if eco is None:
                raise RecordNotFound(eco_id)

            try:
                new_status = apply_transition(eco.status, action)
            except IllegalTransition as exc:
                logger.warning("Refused %s on %s: %s", action.value, eco_id, exc)
                raise TransitionRejected(eco_id, str(exc)) from exc

            approver = user if new_status == ECOStatus.APPROVED else None
            repo.set_status(eco_id, new_status.value, approved_by=approver)
            if new_status in (ECOStatus.APPROVED, ECOStatus.IMPLEMENTED):
                ECORevisionRepository(session).stamp_latest(eco_id, new_status.value, user)
            session.commit()
            logger.info("%s %s %s (-> %s)", user, _PAST_TENSE[action], eco_id, new_status.value)
            return _to_record(eco)

    # ------------------------------------------------------------------
    # Drafting
    # ------------------------------------------------------------------

    def create_eco(self, draft: ECODraft, user: str) -> ECORecord:
        priority = Priority(draft.priority).value
        with _store_session() as session:
            eco = ECORepository(session).create(
                title=draft.title,
                description=draft.description,
                reason=draft.reason,
                priority=priority,
                affected_ipns=format_affected_ipns(draft.affected_ipns),
                created_by=user,
                ncr_id=draft.ncr_id,
            )
            ECORevisionRepository(session).ensure_initial(eco.id, created_by=user)
            session.commit()
            logger.info("%s created %s: %s", user, eco.id, eco.title)
            return _to_record(eco)

    def update_draft(self, eco_id: str, draft: ECODraft) -> ECORecord:
        priority = Priority(draft.priority).value
        with _store_session() as session:
            repo = ECORepository(session)
            eco = self._get_draft(repo, eco_id, "edit")
            repo.update_fields(
                eco.id,
                title=draft.title,
                description=draft.description,
                reason=draft.reason,
                priority=priority,
                affected_ipns=format_affected_ipns(draft.affected_ipns),
                ncr_id=draft.ncr_id,
            )
            session.commit()
            logger.info("Updated draft %s: %s", eco_id, draft.title)
            return _to_record(eco)

    def submit_draft(self, eco_id: str) -> ECORecord:
        with _store_session() as session:
            repo = ECORepository(session)
            eco = self._get_draft(repo, eco_id, "submit")
            repo.set_status(eco.id, ECOStatus.OPEN.value)
            session.commit()
            logger.info("Submitted %s for review", eco_id)
            return _to_record(eco)

    # ------------------------------------------------------------------
    # Revisions
    # ------------------------------------------------------------------

    def create_revision(
        self,
        eco_id: str,
        changes_summary: str,
        user: str,
        effectivity_date: Optional[str] = None,
        notes: str = "",
    ) -> ECORevisionInfo:
        with _store_session() as session:
            eco = ECORepository(session).get_by_id(eco_id)
            if eco is None:
                raise RecordNotFound(eco_id)
            if is_terminal(eco.status):
                raise TransitionRejected(
                    eco_id, f"cannot revise an ECO in state {eco.status!r}"
                )
            rev = ECORevisionRepository(session).create(
                eco_id,
                changes_summary=changes_summary,
                created_by=user,
                effectivity_date=effectivity_date or None,
                notes=notes,
            )
            session.commit()
            logger.info("%s created revision %s for %s", user, rev.revision, eco_id)
            return _to_revision(rev)

    def get_backend_name(self) -> str:
        return "Local database"

    @staticmethod
    def _get_draft(repo: ECORepository, eco_id: str, verb: str) -> ECO:
        eco = repo.get_by_id(eco_id)
        if eco is None:
            raise RecordNotFound(eco_id)
        if eco.status != ECOStatus.DRAFT.value:
            raise TransitionRejected(
                eco_id, f"cannot {verb} an ECO in state {eco.status!r}; only drafts are editable"
            )
        return eco


_PAST_TENSE: dict[ECOAction, str] = {
    ECOAction.APPROVE: "approved",
    ECOAction.IMPLEMENT: "implemented",
    ECOAction.REJECT: "rejected",
}


# ---------------------------------------------------------------------------
# ORM -> snapshot conversion (done inside the session)
# ---------------------------------------------------------------------------

def _to_record(eco: ECO) -> ECORecord:
    return ECORecord(
        id=eco.id,
        title=eco.title,
        status=ECOStatus(eco.status),
        description=eco.description or "",
        reason=eco.reason or "",
        priority=eco.priority,
        created_by=eco.created_by,
        created_at=eco.created_at,
        updated_at=eco.updated_at,
        approved_by=eco.approved_by,
        approved_at=eco.approved_at,
        ncr_id=eco.ncr_id or None,
        affected_ipns=tuple(parse_affected_ipns(eco.affected_ipns)),
    )


def _to_part(part: Part) -> PartMetadata:
    return PartMetadata(
        ipn=part.ipn,
        description=part.description,
        category=part.category,
        manufacturer=part.manufacturer,
        mpn=part.mpn,
    )


def _to_revision(rev: ECORevision) -> ECORevisionInfo:
    return ECORevisionInfo(
        revision=rev.revision,
        status=rev.status,
        changes_summary=rev.changes_summary or "",
        created_by=rev.created_by,
        created_at=rev.created_at,
        approved_by=rev.approved_by,
        approved_at=rev.approved_at,
        implemented_by=rev.implemented_by,
        implemented_at=rev.implemented_at,
        effectivity_date=rev.effectivity_date,
        notes=rev.notes or "",
    )
