from src.api.parser.quantity import extract_quantity


def test_extract_quantity_digits():
    assert extract_quantity("1") == 1
    assert extract_quantity("10 wings") == 10
    assert extract_quantity("2 large pepperoni") == 2
    assert extract_quantity("make it 49") == 49


def test_extract_quantity_words():
    assert extract_quantity("one coke") == 1
    assert extract_quantity("two garlic breads please") == 2
    assert extract_quantity("three pizzas") == 3


def test_extract_quantity_skips_out_of_range_tokens():
    assert extract_quantity("0") is None
    assert extract_quantity("50 pizzas") is None
    # 123 is skipped, the next in-range token wins
    assert extract_quantity("123 main st, 2 cokes") == 2


def test_extract_quantity_digits_beat_words():
    assert extract_quantity("one order of 4 wings") == 4


def test_no_quantity_is_none():
    assert extract_quantity("") is None
    assert extract_quantity("pepperoni") is None
