from __future__ import annotations

import json
from typing import List

import pytest
from fastapi.testclient import TestClient

from src.api.models.state import LineItem
from src.api.parser.types import Intent, InterpretResult
from src.api.server import MSG_EMPTY_TEXT, MSG_NO_SESSION, create_app
from src.api.session_controller import MSG_CONFIRMED, MSG_PICKUP_OR_DELIVERY
from src.api.session_store import InMemorySessionStore
from src.api.store_manager import StoreManager
from src.api.telemetry import TelemetryEmitter, TelemetryEvent
from src.db.ticket_repo import InMemoryTicketRepo
from tests.helpers.store_fixtures import PIZZA64_PHONE, STORES_FIXTURE_DIR, pizza64_dict


class RecordingTelemetry(TelemetryEmitter):
    def __init__(self) -> None:
        self.events: List[TelemetryEvent] = []

        async def insert(evt: TelemetryEvent) -> None:
            self.events.append(evt)

        super().__init__(insert)


class StubAI:
    """Stands in for the model-backed interpreter."""

    def __init__(self, result: InterpretResult) -> None:
        self.result = result
        self.calls = 0

    async def interpret(self, index, settings, session, text):
        self.calls += 1
        return self.result


def _client(stores_dir=STORES_FIXTURE_DIR, **kw) -> TestClient:
    kw.setdefault("telemetry", RecordingTelemetry())
    app = create_app(
        store_manager=StoreManager(str(stores_dir)),
        session_store=kw.pop("session_store", InMemorySessionStore()),
        ticket_repo=kw.pop("ticket_repo", InMemoryTicketRepo()),
        **kw,
    )
    return TestClient(app)


def _start(client: TestClient) -> str:
    r = client.post("/api/chat/start", json={"to": PIZZA64_PHONE})
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Welcome to Pizza 64! What would you like to order?"
    return body["sessionId"]


def _say(client: TestClient, sid: str, text: str):
    r = client.post("/api/chat/message", json={"sessionId": sid, "text": text})
    assert r.status_code == 200
    return r.json()


def test_health():
    with _client() as c:
        assert c.get("/").json() == {"ok": True, "service": "order-agent"}


def test_full_order_creates_ticket_and_ends_session():
    with _client() as c:
        sid = _start(c)
        body = _say(c, sid, "2 large pepperoni, mild")
        assert body["message"] == MSG_PICKUP_OR_DELIVERY
        assert body["done"] is False
        assert body["session"]["awaiting"]["type"] == "orderType"

        body = _say(c, sid, "pickup and a coke")
        assert body["message"].startswith("Please confirm your order.")

        body = _say(c, sid, "yes")
        assert body["message"] == MSG_CONFIRMED
        assert body["done"] is True
        ticket = body["ticket"]
        assert ticket["id"] == 1001
        assert ticket["storeId"] == "pizza64-surrey"
        assert ticket["orderType"] == "Pickup"
        # 2 x 18.99 + 1.99 = 39.97 ; tax 2.00
        assert ticket["subtotal"] == pytest.approx(39.97)
        assert ticket["tax"] == pytest.approx(2.00)
        assert ticket["total"] == pytest.approx(41.97)
        assert "2x Large Pepperoni - Spice: Mild" in ticket["kitchenText"]

        # the session is gone once the ticket exists
        r = c.post("/api/chat/message", json={"sessionId": sid, "text": "hello"})
        assert r.status_code == 400
        assert r.json()["detail"] == MSG_NO_SESSION

        listed = c.get("/api/stores/pizza64-surrey/tickets").json()
        assert [t["id"] for t in listed] == [1001]

        one = c.get("/api/stores/pizza64-surrey/tickets/1001").json()
        assert one["kitchenText"].startswith("ORDER #1001")
        assert c.get("/api/stores/pizza64-surrey/tickets/9999").status_code == 404


def test_items_added_after_confirmation_prompt():
    with _client() as c:
        sid = _start(c)
        _say(c, sid, "large hawaiian")
        _say(c, sid, "pickup")
        body = _say(c, sid, "add a coke")
        assert [li["name"] for li in body["session"]["lineItems"]] == ["Hawaiian", "Coke"]


def test_empty_text_does_not_touch_state():
    with _client() as c:
        sid = _start(c)
        _say(c, sid, "pepperoni")
        body = _say(c, sid, "   ")
        assert body["message"] == MSG_EMPTY_TEXT
        assert body["session"]["turns"] == 1
        assert body["session"]["awaiting"]["type"] == "size"


def test_unknown_session_and_store():
    with _client() as c:
        r = c.post("/api/chat/message", json={"sessionId": "nope", "text": "hi"})
        assert r.status_code == 400
        assert r.json()["detail"] == MSG_NO_SESSION

        r = c.post("/api/chat/start", json={"to": "000-000-0000"})
        assert r.status_code == 404

        assert c.get("/api/stores/nope/tickets").status_code == 404
        assert c.get("/api/stores/nope/menu").status_code == 404


def test_menu_endpoint_lists_entries_by_kind():
    with _client() as c:
        body = c.get("/api/stores/pizza64-surrey/menu").json()
        assert body["sizes"] == ["Small", "Medium", "Large"]
        assert body["menu"]["beverage"] == ["Coke", "Sprite"]
        assert "Double Pepperoni" in body["menu"]["pizza"]


def test_store_without_menu_is_unavailable(tmp_path):
    data = pizza64_dict()
    data["menu"] = {}
    (tmp_path / "empty.json").write_text(json.dumps(data), encoding="utf-8")
    with _client(stores_dir=tmp_path) as c:
        r = c.post("/api/chat/start", json={"to": PIZZA64_PHONE})
        assert r.status_code == 503


def test_unmatched_utterance_emits_telemetry():
    tel = RecordingTelemetry()
    with _client(telemetry=tel) as c:
        sid = _start(c)
        _say(c, sid, "pepperoni")
        _say(c, sid, "purple")
    assert [(e.event_type, e.reason) for e in tel.events] == [("match_failed", "SLOT_UNRESOLVED")]
    assert tel.events[0].detail == {"awaiting": "size"}


def test_ai_result_is_used_unless_it_is_empty():
    ai = StubAI(
        InterpretResult(
            intent=Intent.ORDER,
            matched_items=[LineItem(kind="pizza", name="Hawaiian", qty=2, size="Small")],
            source="ai",
        )
    )
    with _client(ai_interpreter=ai) as c:
        sid = _start(c)
        body = _say(c, sid, "whatever the model says")
        assert body["session"]["lineItems"][0]["name"] == "Hawaiian"
        assert body["message"] == MSG_PICKUP_OR_DELIVERY

    empty = StubAI(InterpretResult.empty(source="ai"))
    with _client(ai_interpreter=empty) as c:
        sid = _start(c)
        body = _say(c, sid, "1 large hawaiian")
        assert empty.calls == 1
        assert body["session"]["lineItems"][0]["size"] == "Large"
