"""
Tests for RemoteECOStore with a mocked requests.Session.

No network access: every HTTP call goes to a MagicMock whose .request()
returns canned responses, so the tests check URL/verb mapping, envelope
unwrapping and error translation.
"""

from unittest.mock import MagicMock

import pytest
import requests

from eco_manager.core.exceptions import (
    PartNotFound,
    RecordNotFound,
    StoreError,
    TransitionRejected,
)
from eco_manager.core.record_store import ECODraft
from eco_manager.core.remote_store import RemoteECOStore
from eco_manager.core.state_machine import ECOAction, ECOStatus

BASE = "http://inventory.test"


def _response(status: int = 200, body=None, reason: str = "") -> MagicMock:
    resp = MagicMock(spec=requests.Response)
    resp.status_code = status
    resp.ok = status < 400
    resp.reason = reason
    if body is None:
        resp.json.side_effect = ValueError("no JSON")
    else:
        resp.json.return_value = body
    return resp


def _eco(status: str = "open", **overrides) -> dict:
    data = {
        "id": "ECO-001",
        "title": "Replace R12",
        "description": "Use 1% part",
        "status": status,
        "priority": "normal",
        "affected_ipns": '["IPN-001", "IPN-999"]',
        "created_by": "alice",
        "created_at": "2026-01-01T00:00:00Z",
        "updated_at": "2026-01-01T00:00:00Z",
    }
    data.update(overrides)
    return data


@pytest.fixture
def http():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def store(http):
    return RemoteECOStore(base_url=BASE + "/", timeout=3.0, token="secret", session=http)


def _last_call(http):
    args, kwargs = http.request.call_args
    return args[0], args[1], kwargs


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestConstruction:

    def test_headers_and_backend_name(self, store, http):
        assert http.headers["Authorization"] == "Bearer secret"
        assert http.headers["Content-Type"] == "application/json"
        assert store.get_backend_name() == f"Server {BASE}"

    def test_no_token_no_auth_header(self, http):
        RemoteECOStore(base_url=BASE, token="", session=http)
        assert "Authorization" not in http.headers


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

class TestReads:

    def test_fetch_eco_unwraps_envelope(self, store, http):
        http.request.return_value = _response(200, {"data": _eco()})
        record = store.fetch_eco("ECO-001")

        method, url, kwargs = _last_call(http)
        assert (method, url) == ("GET", f"{BASE}/api/ecos/ECO-001")
        assert kwargs["timeout"] == 3.0
        assert record.status == ECOStatus.OPEN
        assert record.affected_ipns == ("IPN-001", "IPN-999")

    def test_fetch_eco_404_is_not_found(self, store, http):
        http.request.return_value = _response(404, {"error": "ECO not found"})
        with pytest.raises(RecordNotFound):
            store.fetch_eco("ECO-404")

    def test_fetch_eco_server_error(self, store, http):
        http.request.return_value = _response(500, {"error": "boom"})
        with pytest.raises(StoreError, match="boom"):
            store.fetch_eco("ECO-001")

    def test_fetch_eco_invalid_json(self, store, http):
        http.request.return_value = _response(200, None)
        with pytest.raises(StoreError):
            store.fetch_eco("ECO-001")

    def test_fetch_eco_unknown_status(self, store, http):
        http.request.return_value = _response(200, {"data": _eco(status="cancelled")})
        with pytest.raises(StoreError, match="cancelled"):
            store.fetch_eco("ECO-001")

    @pytest.mark.parametrize("body", [
        {"data": None},
        {"data": []},
        {"data": "ECO-001"},
        {"data": {"title": "Replace R12", "status": "open"}},
    ], ids=["null", "list", "string", "no-id"])
    def test_fetch_eco_malformed_payload(self, store, http, body):
        http.request.return_value = _response(200, body)
        with pytest.raises(StoreError):
            store.fetch_eco("ECO-001")

    @pytest.mark.parametrize("status", [None, ""])
    def test_fetch_eco_missing_status_is_not_draft(self, store, http, status):
        payload = _eco()
        if status is None:
            del payload["status"]
        else:
            payload["status"] = status
        http.request.return_value = _response(200, {"data": payload})
        with pytest.raises(StoreError, match="no status"):
            store.fetch_eco("ECO-001")

    def test_transition_malformed_payload(self, store, http):
        http.request.return_value = _response(200, {"data": None})
        with pytest.raises(StoreError):
            store.transition("ECO-001", ECOAction.APPROVE, "bob")

    def test_connection_error_is_store_error(self, store, http):
        http.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(StoreError, match="refused"):
            store.fetch_eco("ECO-001")

    def test_lookup_part_normalizes_keys(self, store, http):
        http.request.return_value = _response(
            200, {"data": {"IPN": "IPN-001", "Description": "10k Resistor", "MPN": "RC0603"}}
        )
        part = store.lookup_part("IPN-001")
        assert _last_call(http)[1] == f"{BASE}/api/parts/IPN-001"
        assert part.description == "10k Resistor"
        assert part.mpn == "RC0603"

    def test_lookup_part_404(self, store, http):
        http.request.return_value = _response(404, {"error": "not found"})
        with pytest.raises(PartNotFound) as exc_info:
            store.lookup_part("IPN-999")
        assert exc_info.value.reason == "Part not found in system"

    def test_identifiers_are_url_quoted(self, store, http):
        http.request.return_value = _response(404)
        with pytest.raises(PartNotFound):
            store.lookup_part("IPN/1 2")
        assert _last_call(http)[1] == f"{BASE}/api/parts/IPN%2F1%202"

    def test_list_ecos_with_status(self, store, http):
        http.request.return_value = _response(200, {"data": [_eco(), _eco(id="ECO-002")]})
        records = store.list_ecos(ECOStatus.OPEN)
        method, url, kwargs = _last_call(http)
        assert url == f"{BASE}/api/ecos"
        assert kwargs["params"] == {"status": "open"}
        assert [r.id for r in records] == ["ECO-001", "ECO-002"]

    def test_list_ecos_not_a_list(self, store, http):
        http.request.return_value = _response(200, {"data": {"id": "ECO-001"}})
        with pytest.raises(StoreError, match="list of ECOs"):
            store.list_ecos()

    def test_list_ecos_null_is_empty(self, store, http):
        http.request.return_value = _response(200, {"data": None})
        assert store.list_ecos() == []

    def test_list_revisions(self, store, http):
        http.request.return_value = _response(
            200, {"data": [{"revision": "A", "status": "created", "changes_summary": "Initial revision"}]}
        )
        revisions = store.list_revisions("ECO-001")
        assert _last_call(http)[1] == f"{BASE}/api/ecos/ECO-001/revisions"
        assert revisions[0].revision == "A"


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

class TestTransition:

    def test_approve_posts_to_action_endpoint(self, store, http):
        http.request.return_value = _response(
            200, {"data": _eco(status="approved", approved_by="bob")}
        )
        record = store.transition("ECO-001", ECOAction.APPROVE, "bob")
        method, url, _ = _last_call(http)
        assert (method, url) == ("POST", f"{BASE}/api/ecos/ECO-001/approve")
        assert record.status == ECOStatus.APPROVED
        assert record.approved_by == "bob"

    def test_implement_posts_to_action_endpoint(self, store, http):
        http.request.return_value = _response(200, {"data": _eco(status="implemented")})
        store.transition("ECO-001", ECOAction.IMPLEMENT, "bob")
        assert _last_call(http)[:2] == ("POST", f"{BASE}/api/ecos/ECO-001/implement")

    def test_reject_puts_status(self, store, http):
        http.request.return_value = _response(200, {"data": _eco(status="rejected")})
        store.transition("ECO-001", ECOAction.REJECT, "bob")
        method, url, kwargs = _last_call(http)
        assert (method, url) == ("PUT", f"{BASE}/api/ecos/ECO-001")
        assert kwargs["json"] == {"status": "rejected"}

    def test_refused_transition(self, store, http):
        http.request.return_value = _response(409, {"error": "ECO already approved"})
        with pytest.raises(TransitionRejected, match="ECO already approved"):
            store.transition("ECO-001", ECOAction.APPROVE, "bob")

    def test_transition_404(self, store, http):
        http.request.return_value = _response(404, {"error": "not found"})
        with pytest.raises(RecordNotFound):
            store.transition("ECO-404", ECOAction.APPROVE, "bob")


# ---------------------------------------------------------------------------
# Drafting
# ---------------------------------------------------------------------------

class TestDrafting:

    def test_create_eco_payload(self, store, http):
        http.request.return_value = _response(200, {"data": _eco(status="draft")})
        store.create_eco(
            ECODraft(title="Replace R12", affected_ipns=["IPN-001"], ncr_id="NCR-1"), "alice"
        )
        method, url, kwargs = _last_call(http)
        assert (method, url) == ("POST", f"{BASE}/api/ecos")
        assert kwargs["json"]["affected_ipns"] == '["IPN-001"]'
        assert kwargs["json"]["ncr_id"] == "NCR-1"

    def test_submit_draft_puts_open(self, store, http):
        http.request.side_effect = [
            _response(200, {"data": _eco(status="draft")}),
            _response(200, {"data": _eco(status="open")}),
        ]
        record = store.submit_draft("ECO-001")
        method, url, kwargs = _last_call(http)
        assert method == "PUT"
        assert kwargs["json"]["status"] == "open"
        assert record.status == ECOStatus.OPEN

    def test_update_non_draft_refused_without_put(self, store, http):
        http.request.return_value = _response(200, {"data": _eco(status="open")})
        with pytest.raises(TransitionRejected):
            store.update_draft("ECO-001", ECODraft(title="Too late"))
        assert http.request.call_count == 1
        assert _last_call(http)[0] == "GET"


# ---------------------------------------------------------------------------
# Revisions
# ---------------------------------------------------------------------------

class TestCreateRevision:

    def test_posts_to_revisions_endpoint(self, store, http):
        http.request.side_effect = [
            _response(200, {"data": _eco(status="approved")}),
            _response(201, {"data": {
                "revision": "B", "status": "created", "changes_summary": "Swap to 1% part",
                "effectivity_date": "2026-03-01", "created_by": "bob",
            }}),
        ]
        revision = store.create_revision(
            "ECO-001", "Swap to 1% part", "bob",
            effectivity_date="2026-03-01", notes="Stock runs out in Feb",
        )
        method, url, kwargs = _last_call(http)
        assert (method, url) == ("POST", f"{BASE}/api/ecos/ECO-001/revisions")
        assert kwargs["json"] == {
            "changes_summary": "Swap to 1% part",
            "notes": "Stock runs out in Feb",
            "effectivity_date": "2026-03-01",
        }
        assert revision.revision == "B"
        assert revision.effectivity_date == "2026-03-01"

    def test_effectivity_date_omitted_when_empty(self, store, http):
        http.request.side_effect = [
            _response(200, {"data": _eco(status="open")}),
            _response(201, {"data": {"revision": "B", "status": "created"}}),
        ]
        store.create_revision("ECO-001", "Swap", "bob")
        assert "effectivity_date" not in _last_call(http)[2]["json"]

    @pytest.mark.parametrize("status", ["rejected", "implemented"])
    def test_closed_eco_refused_without_post(self, store, http, status):
        http.request.return_value = _response(200, {"data": _eco(status=status)})
        with pytest.raises(TransitionRejected, match=status):
            store.create_revision("ECO-001", "Too late", "bob")
        assert http.request.call_count == 1
        assert _last_call(http)[0] == "GET"

    def test_server_refusal(self, store, http):
        http.request.side_effect = [
            _response(200, {"data": _eco(status="open")}),
            _response(400, {"error": "changes_summary is required"}),
        ]
        with pytest.raises(TransitionRejected, match="changes_summary is required"):
            store.create_revision("ECO-001", "x", "bob")

    def test_malformed_revision_payload(self, store, http):
        http.request.side_effect = [
            _response(200, {"data": _eco(status="open")}),
            _response(201, {"data": None}),
        ]
        with pytest.raises(StoreError):
            store.create_revision("ECO-001", "Swap", "bob")
