from src.api.models.state import LineItem, OrderType, Session
from src.api.models.ticket import Ticket, ticket_from_session
from src.api.pricing import price
from src.api.ticket_formatter import RULE, format_for_kitchen
from tests.helpers.store_fixtures import pizza64_store


def _delivery_ticket() -> Ticket:
    store = pizza64_store()
    s = Session(
        session_id="s-1",
        line_items=[
            LineItem(kind="pizza", name="Pepperoni", qty=2, size="Large", spice="Mild", requires_spice=True),
            LineItem(kind="wings", name="Wings", qty=1, options={"type": "Boneless", "flavor": "BBQ"}),
        ],
        order_type=OrderType.DELIVERY,
        address="123 Main St",
    )
    t = ticket_from_session(store, s, price(store, s))
    t.id = 1001
    return t


def test_kitchen_ticket_layout():
    text = format_for_kitchen(_delivery_ticket())
    lines = text.splitlines()
    assert lines[0] == "ORDER #1001"
    assert lines[1] == "Pizza 64 Surrey"
    assert lines[2] == RULE
    assert lines[3] == "DELIVERY"
    assert lines[4] == "Address: 123 Main St"
    assert "2x Large Pepperoni - Spice: Mild" in lines
    assert "1x Wings - Boneless, BBQ" in lines
    # 2 x 18.99 + 12.99 = 50.97 ; tax 2.55
    assert "Subtotal: $50.97" in lines
    assert "Tax: $2.55" in lines
    assert "TOTAL: $53.52" in lines
    assert not any(line.startswith("UNPRICED") for line in lines)
    assert text.endswith("\n")


def test_pickup_ticket_drops_address_and_lists_unpriced():
    store = pizza64_store()
    s = Session(
        session_id="s-2",
        line_items=[LineItem(kind="side", name="Onion Rings", qty=1)],
        order_type=OrderType.PICKUP,
        address="ignored 1 Rd",
    )
    t = ticket_from_session(store, s, price(store, s))
    assert t.address is None

    lines = format_for_kitchen(t).splitlines()
    assert lines[0] == "ORDER #-"
    assert lines[3] == "PICKUP"
    assert not any(line.startswith("Address") for line in lines)
    assert "TOTAL: $0.00" in lines
    assert lines[-1] == "UNPRICED: Onion Rings"


def test_ticket_dict_round_trip_keeps_camel_case():
    t = _delivery_ticket()
    d = t.to_dict()
    assert d["storeId"] == "pizza64-surrey"
    assert d["orderType"] == "Delivery"
    assert d["items"][0]["name"] == "Pepperoni"
    assert Ticket.from_dict(d) == t
