from src.api.intent import (
    detect_category_question,
    detect_menu_question,
    detect_order_type,
    detect_veg_question,
    has_change_cue,
    has_question_word,
    is_confirm_no,
    is_confirm_yes,
    is_done,
    looks_like_address,
)
from src.api.models.state import OrderType


def test_menu_question():
    assert detect_menu_question("What's on the menu?")
    assert detect_menu_question("what do you have")
    assert not detect_menu_question("2 large pepperoni")


def test_category_question_needs_a_question_cue():
    assert detect_category_question("what pizzas do you have") == "pizza"
    assert detect_category_question("Wings?") == "wings"
    assert detect_category_question("which drinks are available") == "beverage"
    assert detect_category_question("list your salads") == "salad"
    # a bare category word is an order, not a question
    assert detect_category_question("large pepperoni pizza") is None
    assert detect_category_question("10 wings") is None


def test_veg_question():
    assert detect_veg_question("what veg options do you have")
    assert detect_veg_question("vegetarian?")
    # "veggie pizza" is an item name, not a question
    assert not detect_veg_question("one large veggie pizza")


def test_question_word_ignores_a_bare_question_mark():
    assert has_question_word("which wings do you have?")
    assert has_question_word("do you have drinks")
    assert not has_question_word("Can I get 2 large pepperoni pizzas?")
    assert not has_question_word("")


def test_confirm_yes():
    for t in ["yes", "Yep!", "correct", "that's right", "ok", "please confirm", "yes, that's it"]:
        assert is_confirm_yes(t), t
    for t in ["no", "yes but change the size", "nope", ""]:
        assert not is_confirm_yes(t), t


def test_confirm_no():
    for t in ["no", "Nope", "wrong", "not correct", "no, change the size", "I want to change something"]:
        assert is_confirm_no(t), t
    for t in ["yes", "nothing", ""]:
        assert not is_confirm_no(t), t


def test_done_and_change_cues():
    assert is_done("that's all")
    assert is_done("nothing else, thanks")
    assert not is_done("one more coke")

    assert has_change_cue("actually make it hawaiian")
    assert has_change_cue("replace the coke with sprite")
    assert not has_change_cue("add a coke")


def test_order_type():
    assert detect_order_type("pickup please") == OrderType.PICKUP
    assert detect_order_type("I'll pick up") == OrderType.PICKUP
    assert detect_order_type("takeaway") == OrderType.PICKUP
    assert detect_order_type("deliver it") == OrderType.DELIVERY
    assert detect_order_type("Delivery") == OrderType.DELIVERY
    assert detect_order_type("large pepperoni") is None


def test_address_heuristic():
    assert looks_like_address("123 Main St")
    assert looks_like_address("4500 King George Blvd, Surrey")
    assert looks_like_address("unit 4, 88 Elm Avenue")
    assert looks_like_address("#12 - 7000 Scott")
    assert not looks_like_address("Main Street")
    assert not looks_like_address("2 large pepperoni")
    # "st" must be its own word
    assert not looks_like_address("2 stromboli")
