"""
Repository classes for data access.

Each repository operates on a single aggregate root.
All methods accept an explicit Session argument; the caller (typically
LocalECOStore in core/) is responsible for session lifecycle and for
enforcing the ECO lifecycle rules.

Example:
    with get_session() as session:
        repo = ECORepository(session)
        eco = repo.get_by_id("ECO-001")
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from eco_manager.data.models import ECO, ECORevision, Part

ECO_ID_PREFIX = "ECO"
ECO_ID_DIGITS = 3

_ECO_STATUSES = {"draft", "open", "approved", "rejected", "implemented"}


def _utcnow_str() -> str:
    return datetime.now(timezone.utc).isoformat()


class PartRepository:
    """Lookup of inventory parts, plus creation when seeding the catalog."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_ipn(self, ipn: str) -> Optional[Part]:
        return (
            self._session.query(Part)
            .filter(Part.ipn == ipn)
            .first()
        )

    def create(
        self,
        ipn: str,
        description: str,
        category: Optional[str] = None,
        manufacturer: Optional[str] = None,
        mpn: Optional[str] = None,
    ) -> Part:
        part = Part(
            ipn=ipn,
            description=description,
            category=category,
            manufacturer=manufacturer,
            mpn=mpn,
        )
        self._session.add(part)
        self._session.flush()
        return part


class ECORepository:
    """CRUD operations for ECO entities. No lifecycle rules live here."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, eco_id: str) -> Optional[ECO]:
        return self._session.get(ECO, eco_id)

    def get_all(self, status: Optional[str] = None) -> list[ECO]:
        query = self._session.query(ECO)
        if status:
            query = query.filter(ECO.status == status)
        # created_at can collide for ECOs created in the same instant;
        # the id sequence breaks the tie.
        return query.order_by(ECO.created_at.desc(), ECO.id.desc()).all()

    def get_next_id(self) -> str:
        """Generate the next ECO identifier (ECO-001, ECO-002, ...)."""
        ids = [
            row[0]
            for row in self._session.query(ECO.id)
            .filter(ECO.id.like(f"{ECO_ID_PREFIX}-%"))
            .all()
        ]
        return _next_sequential_id(ids, ECO_ID_PREFIX, ECO_ID_DIGITS)

    def create(
        self,
        title: str,
        description: str = "",
        reason: str = "",
        priority: str = "normal",
        affected_ipns: str = "",
        created_by: str = "engineer",
        ncr_id: Optional[str] = None,
    ) -> ECO:
        now = _utcnow_str()
        eco = ECO(
            id=self.get_next_id(),
            title=title,
            description=description,
            reason=reason,
            status="draft",
            priority=priority,
            affected_ipns=affected_ipns,
            created_by=created_by,
            created_at=now,
            updated_at=now,
            ncr_id=ncr_id,
        )
        self._session.add(eco)
        self._session.flush()  # populate defaults without committing
        return eco

    def update_fields(self, eco_id: str, **fields) -> Optional[ECO]:
        """Overwrite editable columns. Unknown keys raise ValueError."""
        editable = {"title", "description", "reason", "priority", "affected_ipns", "ncr_id"}
        unknown = set(fields) - editable
        if unknown:
            raise ValueError(f"Non-editable ECO fields: {sorted(unknown)}")
        eco = self.get_by_id(eco_id)
        if eco:
            for name, value in fields.items():
                setattr(eco, name, value)
            eco.updated_at = _utcnow_str()
        return eco

    def set_status(
        self,
        eco_id: str,
        status: str,
        approved_by: Optional[str] = None,
    ) -> Optional[ECO]:
        """Write a new lifecycle status; stamps approval when approved_by is given."""
        if status not in _ECO_STATUSES:
            raise ValueError(f"status must be one of {_ECO_STATUSES}, got {status!r}")
        eco = self.get_by_id(eco_id)
        if eco:
            now = _utcnow_str()
            eco.status = status
            eco.updated_at = now
            if approved_by is not None:
                eco.approved_by = approved_by
                eco.approved_at = now
        return eco


class ECORevisionRepository:
    """Append-mostly access to an ECO's revision history."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_eco(self, eco_id: str) -> list[ECORevision]:
        return (
            self._session.query(ECORevision)
            .filter(ECORevision.eco_id == eco_id)
            .order_by(ECORevision.id.asc())
            .all()
        )

    def get_latest_for_eco(self, eco_id: str) -> Optional[ECORevision]:
        # Order by id (monotonically increasing autoincrement), not by
        # created_at which can collide for revisions created in the same instant.
        return (
            self._session.query(ECORevision)
            .filter(ECORevision.eco_id == eco_id)
            .order_by(ECORevision.id.desc())
            .first()
        )

    def get_next_revision_code(self, eco_id: str) -> str:
        """Next alphabetic revision letter for an ECO (A, B, ... Z, AA, ...)."""
        latest = self.get_latest_for_eco(eco_id)
        if latest is None:
            return "A"
        return _increment_revision_code(latest.revision)

    def create(
        self,
        eco_id: str,
        changes_summary: str = "",
        created_by: str = "engineer",
        effectivity_date: Optional[str] = None,
        notes: str = "",
    ) -> ECORevision:
        rev = ECORevision(
            eco_id=eco_id,
            revision=self.get_next_revision_code(eco_id),
            status="created",
            changes_summary=changes_summary,
            created_by=created_by,
            effectivity_date=effectivity_date,
            notes=notes,
        )
        self._session.add(rev)
        self._session.flush()
        return rev

    def ensure_initial(self, eco_id: str, created_by: str) -> ECORevision:
        """Create revision A ("Initial revision") if the ECO has none yet."""
        latest = self.get_latest_for_eco(eco_id)
        if latest is not None:
            return latest
        return self.create(eco_id, changes_summary="Initial revision", created_by=created_by)

    def stamp_latest(self, eco_id: str, status: str, user: str) -> Optional[ECORevision]:
        """Record approval or implementation on the latest revision."""
        rev = self.get_latest_for_eco(eco_id)
        if rev is None:
            return None
        now = _utcnow_str()
        if status == "approved":
            rev.approved_by = user
            rev.approved_at = now
        elif status == "implemented":
            rev.implemented_by = user
            rev.implemented_at = now
        else:
            raise ValueError(f"Revisions can only be stamped approved/implemented, got {status!r}")
        rev.status = status
        return rev


def _next_sequential_id(existing: list[str], prefix: str, digits: int) -> str:
    """
    Next zero-padded identifier after the highest numeric suffix in existing.

    Examples:
        []                        -> 'ECO-001'
        ['ECO-001', 'ECO-007']    -> 'ECO-008'
        ['ECO-999']               -> 'ECO-1000'
    """
    highest = 0
    for ident in existing:
        suffix = ident[len(prefix) + 1:]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}-{highest + 1:0{digits}d}"


def _increment_revision_code(code: str) -> str:
    """
    Increment an alphabetic revision code.

    Examples:
        'A'  -> 'B'
        'Z'  -> 'AA'
        'AZ' -> 'BA'
        'ZZ' -> 'AAA'
    """
    chars = list(code.upper())
    carry = True
    idx = len(chars) - 1
    while carry and idx >= 0:
        if chars[idx] == "Z":
            chars[idx] = "A"
            idx -= 1
        else:
            chars[idx] = chr(ord(chars[idx]) + 1)
            carry = False
    if carry:
        chars.insert(0, "A")
    return "".join(chars)
