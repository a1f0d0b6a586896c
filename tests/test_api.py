import json

import pytest
from fastapi.testclient import TestClient

from app.models.items import FoundItemCreate, LostItemCreate, Profile
from app.models.oracle import OracleConfig
from app.services.match_engine import MatchEngine
from app.services.match_session import SessionRegistry, get_registry
from app.services.oracle_client import OracleClient
from app.services.report_store import ReportStore, get_store
from main import app


@pytest.fixture
def api(png_data_url, fake_provider, stub_normalizer):
    store = ReportStore()
    for item_id, name in (("lost-1", "Jansport Backpack"), ("lost-2", "Hydro-Flask Bottle")):
        store.add_lost(LostItemCreate(
            profile=Profile(full_name="Jane Doe", section_year="BSCS 4-B", contact_number="09123456789"),
            item_name=name, date_lost="2023-10-26", last_known_location="Library",
            description=name, image=png_data_url,
        ), item_id=item_id)
    store.add_found(FoundItemCreate(
        item_name="Backpack", image=png_data_url, description="Black backpack, NASA patch",
        location_found="Library", date_found="2023-10-26",
    ), item_id="found-1")

    provider = fake_provider(reply=json.dumps({"matches": [
        {"id": "lost-2", "confidence": 40, "reasoning": "different item"},
        {"id": "lost-1", "confidence": 92, "reasoning": "same patch"},
    ]}))
    client = OracleClient(OracleConfig(provider="fake"), provider=provider)
    registry = SessionRegistry(MatchEngine(client, normalizer_factory=lambda: stub_normalizer))

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_report_intake_assigns_ids(api, png_data_url):
    resp = api.post("/reports/lost", json={
        "profile": {"fullName": "John Smith", "sectionYear": "BSME 2-A", "contactNumber": "09987654321"},
        "itemName": "Hydro-Flask", "dateLost": "2023-10-25", "lastKnownLocation": "Gym",
        "description": "Blue bottle", "image": png_data_url,
    })
    assert resp.status_code == 201
    body = resp.json()
    assert body["id"].startswith("lost-")
    assert body["profile"]["fullName"] == "John Smith"
    ids = [r["id"] for r in api.get("/reports/lost").json()]
    assert ids[-1] == body["id"]
    assert len(set(ids)) == len(ids)


def test_select_dismiss_notify_flow(api):
    session_id = api.post("/matching/session").json()["session_id"]

    resp = api.post(f"/matching/{session_id}/select", json={"found_id": "found-1"})
    assert resp.status_code == 200
    assert resp.json()["loading"] is True

    state = api.get(f"/matching/{session_id}").json()
    assert state["loading"] is False
    assert state["selectedFoundId"] == "found-1"
    assert [(m["id"], m["band"]) for m in state["matches"]] == [("lost-1", "high"), ("lost-2", "low")]

    state = api.post(f"/matching/{session_id}/dismiss", json={"lost_id": "lost-1"}).json()
    assert [m["id"] for m in state["matches"]] == ["lost-2"]
    assert state["dismissed"] == ["lost-1"]

    ack = api.post(f"/matching/{session_id}/notify/lost-2").json()
    assert ack["lostItemId"] == "lost-2"
    assert ack["delivered"] is False
    assert "Jane Doe" in ack["message"]


def test_unknown_ids_return_404(api):
    assert api.get("/matching/nope").status_code == 404
    session_id = api.post("/matching/session").json()["session_id"]
    assert api.post(f"/matching/{session_id}/select", json={"found_id": "found-404"}).status_code == 404
    assert api.post(f"/matching/{session_id}/notify/lost-404").status_code == 404


def test_root_lists_routes(api):
    routes = api.get("/").json()["routes"]
    assert "/matching/session" in routes
