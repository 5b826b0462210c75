"""
RemoteECOStore — IECOStore backed by the inventory server's REST API.

Endpoint mapping:
    fetch_eco        GET  /api/ecos/{id}
    lookup_part      GET  /api/parts/{ipn}
    transition       POST /api/ecos/{id}/approve
                     POST /api/ecos/{id}/implement
                     PUT  /api/ecos/{id}            {"status": "rejected"}
    list_ecos        GET  /api/ecos[?status=...]
    list_revisions   GET  /api/ecos/{id}/revisions
    create_revision  POST /api/ecos/{id}/revisions
    create_eco       POST /api/ecos
    update_draft     PUT  /api/ecos/{id}
    submit_draft     PUT  /api/ecos/{id}            {..., "status": "open"}

Successful responses wrap their payload as {"data": ...}; failures carry
{"error": "..."}. Timeouts come from settings; there is no retry loop here.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from eco_manager.config.settings import settings
from eco_manager.core.affected_parts import format_affected_ipns, parse_affected_ipns
from eco_manager.core.exceptions import (
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
from eco_manager.core.state_machine import ECOAction, ECOStatus, is_terminal

logger = logging.getLogger(__name__)


class RemoteECOStore(IECOStore):

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.api_timeout_seconds
        self._http = session or requests.Session()
        self._http.headers.update({"Content-Type": "application/json"})
        token = token if token is not None else settings.api_token
        if token:
            self._http.headers["Authorization"] = f"Bearer {token}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def fetch_eco(self, eco_id: str) -> ECORecord:
        resp = self._request("GET", f"/api/ecos/{quote(eco_id, safe='')}")
        if resp.status_code == 404:
            raise RecordNotFound(eco_id)
        return _to_record(self._unwrap(resp))

    def lookup_part(self, ipn: str) -> PartMetadata:
        resp = self._request("GET", f"/api/parts/{quote(ipn, safe='')}")
        if resp.status_code == 404:
            raise PartNotFound(ipn)
        data = _expect_dict(self._unwrap(resp), "a part")
        # Part fields come back with their original column names; normalize case.
        fields = {str(k).lower(): v for k, v in data.items()}
        return PartMetadata(
            ipn=fields.get("ipn") or ipn,
            description=fields.get("description") or "",
            category=fields.get("category"),
            manufacturer=fields.get("manufacturer"),
            mpn=fields.get("mpn"),
        )

    def list_ecos(self, status: Optional[ECOStatus] = None) -> list[ECORecord]:
        params = {"status": ECOStatus(status).value} if status else None
        resp = self._request("GET", "/api/ecos", params=params)
        return [_to_record(item) for item in _expect_list(self._unwrap(resp), "ECOs")]

    def list_revisions(self, eco_id: str) -> list[ECORevisionInfo]:
        resp = self._request("GET", f"/api/ecos/{quote(eco_id, safe='')}/revisions")
        if resp.status_code == 404:
            raise RecordNotFound(eco_id)
        return [_to_revision(item) for item in _expect_list(self._unwrap(resp), "revisions")]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def transition(self, eco_id: str, action: ECOAction, user: str) -> ECORecord:
        # The server identifies the acting user from the session/token;
        # user is only logged here.
        action = ECOAction(action)
        path = f"/api/ecos/{quote(eco_id, safe='')}"
        if action == ECOAction.REJECT:
            resp = self._request("PUT", path, json={"status": ECOStatus.REJECTED.value})
        else:
            resp = self._request("POST", f"{path}/{action.value}")

        if resp.status_code == 404:
            raise RecordNotFound(eco_id)
        if not resp.ok:
            message = _error_message(resp)
            logger.warning("Server refused %s on %s: %s", action.value, eco_id, message)
            raise TransitionRejected(eco_id, message)
        logger.info("%s requested %s on %s", user, action.value, eco_id)
        return _to_record(self._unwrap(resp))

    # ------------------------------------------------------------------
    # Drafting
    # ------------------------------------------------------------------

    def create_eco(self, draft: ECODraft, user: str) -> ECORecord:
        resp = self._request("POST", "/api/ecos", json=_draft_payload(draft))
        if not resp.ok:
            raise TransitionRejected("(new)", _error_message(resp))
        record = _to_record(self._unwrap(resp))
        logger.info("%s created %s: %s", user, record.id, record.title)
        return record

    def update_draft(self, eco_id: str, draft: ECODraft) -> ECORecord:
        self._require_draft(eco_id, "edit")
        payload = {**_draft_payload(draft), "status": ECOStatus.DRAFT.value}
        return self._put_eco(eco_id, payload)

    def submit_draft(self, eco_id: str) -> ECORecord:
        current = self._require_draft(eco_id, "submit")
        payload = {
            "title": current.title,
            "description": current.description,
            "reason": current.reason,
            "priority": current.priority,
            "affected_ipns": format_affected_ipns(current.affected_ipns),
            "status": ECOStatus.OPEN.value,
        }
        return self._put_eco(eco_id, payload)

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
        current = self.fetch_eco(eco_id)
        if is_terminal(current.status):
            raise TransitionRejected(
                eco_id, f"cannot revise an ECO in state {current.status.value!r}"
            )
        payload = {"changes_summary": changes_summary, "notes": notes}
        if effectivity_date:
            payload["effectivity_date"] = effectivity_date
        resp = self._request(
            "POST", f"/api/ecos/{quote(eco_id, safe='')}/revisions", json=payload
        )
        if resp.status_code == 404:
            raise RecordNotFound(eco_id)
        if not resp.ok:
            raise TransitionRejected(eco_id, _error_message(resp))
        revision = _to_revision(self._unwrap(resp))
        logger.info("%s created revision %s for %s", user, revision.revision, eco_id)
        return revision

    def get_backend_name(self) -> str:
        return f"Server {self._base_url}"

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _require_draft(self, eco_id: str, verb: str) -> ECORecord:
        current = self.fetch_eco(eco_id)
        if current.status != ECOStatus.DRAFT:
            raise TransitionRejected(
                eco_id,
                f"cannot {verb} an ECO in state {current.status.value!r}; only drafts are editable",
            )
        return current

    def _put_eco(self, eco_id: str, payload: dict) -> ECORecord:
        resp = self._request("PUT", f"/api/ecos/{quote(eco_id, safe='')}", json=payload)
        if resp.status_code == 404:
            raise RecordNotFound(eco_id)
        if not resp.ok:
            raise TransitionRejected(eco_id, _error_message(resp))
        return _to_record(self._unwrap(resp))

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self._base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            return self._http.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise StoreError(f"{method} {url} failed: {exc}") from exc

    @staticmethod
    def _unwrap(resp: requests.Response) -> Any:
        """Return the "data" payload of a successful response."""
        if resp.status_code >= 500:
            raise StoreError(f"Server error {resp.status_code}: {_error_message(resp)}")
        if not resp.ok:
            raise StoreError(f"Unexpected status {resp.status_code}: {_error_message(resp)}")
        try:
            body = resp.json()
        except ValueError as exc:
            raise StoreError(f"Invalid JSON from server: {exc}") from exc
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body


# ---------------------------------------------------------------------------
# Payload conversion
# ---------------------------------------------------------------------------

def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.reason or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return resp.reason or f"HTTP {resp.status_code}"


def _draft_payload(draft: ECODraft) -> dict:
    payload = {
        "title": draft.title,
        "description": draft.description,
        "reason": draft.reason,
        "priority": draft.priority,
        "affected_ipns": format_affected_ipns(draft.affected_ipns),
    }
    if draft.ncr_id:
        payload["ncr_id"] = draft.ncr_id
    return payload


def _expect_list(payload: Any, what: str) -> list:
    if payload is None:
        return []
    if not isinstance(payload, list):
        raise StoreError(f"Expected a list of {what} from server, got {type(payload).__name__}")
    return payload


def _expect_dict(payload: Any, what: str) -> dict:
    if not isinstance(payload, dict):
        raise StoreError(f"Expected {what} object from server, got {type(payload).__name__}")
    return payload


def _to_record(data: Any) -> ECORecord:
    data = _expect_dict(data, "an ECO")
    if not data.get("id"):
        raise StoreError("ECO record from server has no id")
    # The state is never guessed: a missing or unknown status makes the record unusable.
    raw_status = data.get("status")
    if not raw_status:
        raise StoreError(f"ECO {data['id']!r} has no status")
    try:
        status = ECOStatus(raw_status)
    except ValueError:
        raise StoreError(f"ECO {data['id']!r} has unsupported status {raw_status!r}") from None
    return ECORecord(
        id=data["id"],
        title=data.get("title") or "",
        status=status,
        description=data.get("description") or "",
        reason=data.get("reason") or "",
        priority=data.get("priority") or "normal",
        created_by=data.get("created_by") or "",
        created_at=data.get("created_at") or "",
        updated_at=data.get("updated_at") or "",
        approved_by=data.get("approved_by"),
        approved_at=data.get("approved_at"),
        ncr_id=data.get("ncr_id") or None,
        affected_ipns=tuple(parse_affected_ipns(data.get("affected_ipns"))),
    )


def _to_revision(data: Any) -> ECORevisionInfo:
    data = _expect_dict(data, "a revision")
    return ECORevisionInfo(
        revision=data.get("revision") or "",
        status=data.get("status") or "",
        changes_summary=data.get("changes_summary") or "",
        created_by=data.get("created_by") or "",
        created_at=data.get("created_at") or "",
        approved_by=data.get("approved_by"),
        approved_at=data.get("approved_at"),
        implemented_by=data.get("implemented_by"),
        implemented_at=data.get("implemented_at"),
        effectivity_date=data.get("effectivity_date"),
        notes=data.get("notes") or "",
    )
