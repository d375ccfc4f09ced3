import json
import pathlib

import jsonschema
import pytest

from src.api.store_manager import (
    StoreConfigError,
    StoreManager,
    StoreNotFoundError,
    normalize_phone,
    store_from_dict,
)
from tests.helpers.store_fixtures import PIZZA64_PHONE, STORES_FIXTURE_DIR, pizza64_dict

ROOT = pathlib.Path(__file__).resolve().parents[1]
SCHEMA = ROOT / "tests" / "fixtures" / "schema" / "store.schema.json"


def _load(p: pathlib.Path):
    return json.loads(p.read_text(encoding="utf-8"))


def test_fixture_schema_validation():
    jsonschema.validate(pizza64_dict(), _load(SCHEMA))


def test_shipped_store_matches_fixture_and_schema():
    shipped = _load(ROOT / "stores" / "pizza64.json")
    assert shipped == pizza64_dict()
    jsonschema.validate(shipped, _load(SCHEMA))


def test_normalize_phone():
    assert normalize_phone("218-396-3550") == "+12183963550"
    assert normalize_phone("(218) 396-3550") == "+12183963550"
    assert normalize_phone("12183963550") == "+12183963550"
    assert normalize_phone("+1 218 396 3550") == "+12183963550"
    assert normalize_phone("") == ""


def test_load_fixture_store():
    sm = StoreManager(str(STORES_FIXTURE_DIR))
    cfg = sm.require_store_by_phone(PIZZA64_PHONE)
    assert cfg.store_id == "pizza64-surrey"
    assert cfg.supported_sizes == ("Small", "Medium", "Large")
    assert cfg.tax_rate == 0.05
    assert cfg.currency == "CAD"
    assert cfg.greeting.startswith("Welcome to Pizza 64")
    assert sm.get_store("pizza64-surrey") is cfg
    assert sm.get_store("nope") is None

    with pytest.raises(StoreNotFoundError):
        sm.require_store_by_phone("000-000-0000")


def test_broken_files_are_skipped_and_yaml_is_read(tmp_path):
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "list.json").write_text("[1, 2]", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    (tmp_path / "corner.yaml").write_text(
        "\n".join(
            [
                "id: corner",
                "phone: 604-555-0199",
                "settings:",
                "  supportedSizes: [small, large]",
                "menu:",
                "  sides:",
                "    - name: Fries",
                "prices:",
                "  Fries: 3.5",
            ]
        ),
        encoding="utf-8",
    )

    sm = StoreManager(str(tmp_path))
    stores = sm.all_stores()
    assert [s.store_id for s in stores] == ["corner"]
    assert stores[0].supported_sizes == ("Small", "Large")
    assert stores[0].name == "corner"

    (tmp_path / "second.json").write_text(json.dumps({**pizza64_dict(), "id": "second", "phone": "1"}), encoding="utf-8")
    assert len(sm.all_stores()) == 1
    assert {s.store_id for s in sm.reload()} == {"corner", "second"}


def test_missing_folder_is_empty(tmp_path):
    assert StoreManager(str(tmp_path / "nope")).all_stores() == []


def test_store_from_dict_rejects_bad_shapes():
    with pytest.raises(StoreConfigError):
        store_from_dict({"menu": {}})
    with pytest.raises(StoreConfigError):
        store_from_dict({"id": "x", "menu": []})
    with pytest.raises(StoreConfigError):
        store_from_dict({"id": "x", "menu": {}, "settings": {"taxRate": "lots"}})
    with pytest.raises(StoreConfigError):
        store_from_dict({"id": "x", "menu": {}, "prices": [1]})
