"""HTTP surface: request parsing and result → status code mapping."""

import pytest
from unittest.mock import MagicMock
from fastapi.testclient import TestClient
from parkgate.database import get_db
from parkgate.main import app
from parkgate.services.gate_controller import GateController
from parkgate.services.gate_link import GateFrame
from parkgate.services.results import AdmissionResult, Outcome


class StubDispatcher:
    def __init__(self, result):
        self.result = result
        self.calls = []

    async def dispatch(self, action, payload=None):
        self.calls.append((action, payload))
        return self.result


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def use_result(outcome, message="msg", **fields):
    stub = StubDispatcher(AdmissionResult(outcome, message, **fields))
    app.state.dispatcher = stub
    return stub


class TestAdmissionRoutes:
    def test_validate_accepts_doc_id_alias(self, client):
        stub = use_result(Outcome.VALID, "Vehicle can enter.", data={"plateNumber": "ABC123"}, action="enter")
        resp = client.post("/api/validate", json={"docId": "DOC-1"})
        assert resp.status_code == 200
        assert resp.json()["action"] == "enter"
        assert stub.calls == [("validate", {"document_id": "DOC-1"})]

    def test_validate_numeric_document_id(self, client):
        stub = use_result(Outcome.NOT_FOUND, "Document not found")
        resp = client.post("/api/validate", json={"docId": 20261018})
        assert resp.status_code == 404
        assert stub.calls == [("validate", {"document_id": "20261018"})]

    def test_entry_numeric_plate_and_contact(self, client):
        stub = use_result(Outcome.ACCEPTED, "Vehicle entered successfully", plate_number="123456")
        resp = client.post("/api/vehicle-entry",
                           json={"data": {"plateNumber": 123456, "contactNumber": 9170000000}})
        assert resp.status_code == 201
        payload = stub.calls[0][1]
        assert payload["plate_number"] == "123456"
        assert payload["contact_number"] == "9170000000"

    def test_validate_missing_document(self, client):
        use_result(Outcome.MISSING_DOCUMENT_ID, "Invalid or missing document ID")
        resp = client.post("/api/validate", json={})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid or missing document ID"

    def test_entry_created(self, client):
        stub = use_result(Outcome.ACCEPTED, "Vehicle entered successfully",
                          plate_number="ABC123", transaction_id="1-ABC123")
        resp = client.post("/api/vehicle-entry",
                           json={"data": {"plateNumber": "ABC123", "vehicleType": "car", "status": None}})
        assert resp.status_code == 201
        assert resp.json()["plateNumber"] == "ABC123"
        action, payload = stub.calls[0]
        assert action == "vehicle-entry"
        assert payload["plate_number"] == "ABC123"
        assert payload["vehicle_type"] == "car"

    @pytest.mark.parametrize("outcome,code", [
        (Outcome.MISSING_PLATE, 400),
        (Outcome.DUPLICATE_ENTRY, 409),
        (Outcome.CAPACITY_EXCEEDED, 409),
        (Outcome.EXIT_IN_PROGRESS, 409),
        (Outcome.INTERNAL_ERROR, 500),
    ])
    def test_entry_rejections(self, client, outcome, code):
        use_result(outcome, "rejected")
        resp = client.post("/api/vehicle-entry", json={"plateNumber": "ABC123"})
        assert resp.status_code == code
        assert resp.json()["message"] == "rejected"

    def test_exit_flat_body(self, client):
        stub = use_result(Outcome.RELEASED, "Vehicle checked out successfully", plate_number="ABC123")
        resp = client.post("/api/vehicle-exit", json={"plateNumber": "ABC123"})
        assert resp.status_code == 200
        assert stub.calls[0][1]["plate_number"] == "ABC123"

    def test_exit_not_found(self, client):
        use_result(Outcome.NOT_FOUND, "Vehicle not found in the parking area")
        assert client.post("/api/vehicle-exit", json={"plateNumber": "NOPE"}).status_code == 404

    def test_history_empty_is_ok(self, client):
        stub = use_result(Outcome.EMPTY, "No records found for the specified date", data=[])
        resp = client.get("/api/vehicle-history", params={"date": "2026-10-18"})
        assert resp.status_code == 200
        assert resp.json()["data"] == []
        assert stub.calls == [("vehicle-history", {"date": "2026-10-18"})]

    def test_history_bad_date(self, client):
        use_result(Outcome.INVALID_DATE, "Invalid or missing date")
        assert client.get("/api/vehicle-history").status_code == 400


class TestGateRoutes:
    def test_open_when_already_open(self, client, make_link):
        link = make_link()
        gate = GateController(link, ack_timeout=1)
        gate.handle_frame(GateFrame("opened"))
        app.state.gate = gate

        resp = client.get("/api/open")

        assert resp.status_code == 200
        assert resp.json()["direction"] == "open"
        assert resp.json()["running"] is False
        assert link.sent == []

    def test_busy_gate(self, client, make_link):
        gate = GateController(make_link(), ack_timeout=1)
        gate.handle_frame(GateFrame("running", "close"))
        app.state.gate = gate

        resp = client.get("/api/close")

        assert resp.status_code == 409
        assert resp.json()["status"] == "busy"

    def test_no_device(self, client, make_link):
        app.state.gate = GateController(make_link(available=False), ack_timeout=1)
        resp = client.get("/api/open")
        assert resp.status_code == 503
        assert "message" in resp.json()

    def test_gate_timeout(self, client, make_link):
        app.state.gate = GateController(make_link(), ack_timeout=0.05)
        assert client.get("/api/open").status_code == 504


class TestHealth:
    def test_degraded_without_gate(self, client, make_link):
        app.state.gate = GateController(make_link(available=False))
        admission = MagicMock()
        admission.occupancy.return_value = [{"classKey": "all", "capacity": 50, "occupied": 3, "available": 47}]
        app.state.admission = admission
        app.dependency_overrides[get_db] = lambda: MagicMock()

        body = client.get("/api/health").json()

        assert body["database"] == "ok"
        assert body["status"] == "degraded"
        assert body["gate"]["available"] is False
        assert body["capacity"][0]["available"] == 47
