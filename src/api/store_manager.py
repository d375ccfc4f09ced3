from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SIZES: Tuple[str, ...] = ("Small", "Medium", "Large")
DEFAULT_GREETING = "Welcome. What would you like to order?"

_STORE_SUFFIXES = (".json", ".yaml", ".yml")


class StoreConfigError(ValueError):
    """Store config exists but cannot take orders (empty menu, no prices, bad shape)."""


class StoreNotFoundError(LookupError):
    pass


# -------------------------
# Data model
# -------------------------
@dataclass(frozen=True)
class StoreConfig:
    store_id: str
    name: str
    phone: str
    phone_norm: str
    greeting: str
    supported_sizes: Tuple[str, ...]
    tax_rate: float
    currency: str
    menu: Dict[str, Any] = field(default_factory=dict)
    prices: Dict[str, Any] = field(default_factory=dict)
    source_path: str = ""


# -------------------------
# Helpers
# -------------------------
def normalize_phone(phone: str) -> str:
    """
    E.164-ish normalization for US/Canada numbers.
      "218-396-3550"    -> "+12183963550"
      "(218) 396-3550"  -> "+12183963550"
      "12183963550"     -> "+12183963550"
    Anything else keeps its digits (best effort).
    """
    digits = re.sub(r"[^\d]", "", str(phone or "").strip())
    if len(digits) == 10:
        digits = "1" + digits
    return f"+{digits}" if digits else ""


def _read_store_file(p: Path) -> Dict[str, Any]:
    raw = p.read_text(encoding="utf-8")
    if p.suffix.lower() == ".json":
        data = json.loads(raw)
    else:
        data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise StoreConfigError(f"{p.name}: top-level must be an object")
    return data


def _sizes_from(settings_block: Dict[str, Any]) -> Tuple[str, ...]:
    sizes = settings_block.get("supportedSizes")
    if not isinstance(sizes, list) or not sizes:
        return DEFAULT_SIZES
    out = [str(s).strip().title() for s in sizes if str(s).strip()]
    return tuple(out) or DEFAULT_SIZES


def store_from_dict(data: Dict[str, Any], source_path: str = "") -> StoreConfig:
    store_id = str(data.get("id") or "").strip()
    if not store_id:
        raise StoreConfigError(f"store config without id ({source_path or 'inline'})")

    menu = data.get("menu")
    if not isinstance(menu, dict):
        raise StoreConfigError(f"store {store_id}: 'menu' must be an object")

    settings_block = data.get("settings") or {}
    if not isinstance(settings_block, dict):
        settings_block = {}
    convo = data.get("conversation") or {}
    if not isinstance(convo, dict):
        convo = {}

    tax_raw = settings_block.get("taxRate", data.get("tax_rate", 0)) or 0
    try:
        tax_rate = float(tax_raw)
    except (TypeError, ValueError):
        raise StoreConfigError(f"store {store_id}: taxRate is not a number: {tax_raw!r}")

    prices = data.get("prices") or {}
    if not isinstance(prices, dict):
        raise StoreConfigError(f"store {store_id}: 'prices' must be an object")

    phone = str(data.get("phone") or "").strip()

    return StoreConfig(
        store_id=store_id,
        name=str(data.get("name") or store_id),
        phone=phone,
        phone_norm=normalize_phone(phone),
        greeting=str(convo.get("greeting") or DEFAULT_GREETING).strip(),
        supported_sizes=_sizes_from(settings_block),
        tax_rate=tax_rate,
        currency=str(settings_block.get("currency") or "CAD").upper(),
        menu=menu,
        prices=prices,
        source_path=source_path,
    )


# -------------------------
# StoreManager
# -------------------------
class StoreManager:
    """
    Loads store configs from:
      <base_dir>/*.json | *.yaml | *.yml
    One file per store. Loaded once and cached; reload() re-reads the folder.
    Files that fail to parse are logged and skipped.
    """

    def __init__(self, base_dir: str):
        self.base_dir = Path(base_dir).resolve()
        self._stores: Optional[List[StoreConfig]] = None

    def _load_all(self) -> List[StoreConfig]:
        if self._stores is not None:
            return self._stores

        logger.info("Loading stores from: %s", self.base_dir)
        if not self.base_dir.exists():
            logger.warning("Stores folder not found: %s", self.base_dir)
            self._stores = []
            return self._stores

        stores: List[StoreConfig] = []
        for p in sorted(self.base_dir.iterdir()):
            if not p.is_file() or p.suffix.lower() not in _STORE_SUFFIXES:
                continue
            try:
                stores.append(store_from_dict(_read_store_file(p), source_path=str(p)))
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.error("Failed to load store file %s: %s", p.name, e)

        logger.info(
            "Stores loaded: %s",
            [(s.store_id, s.phone_norm) for s in stores],
        )
        self._stores = stores
        return stores

    def reload(self) -> List[StoreConfig]:
        self._stores = None
        return self._load_all()

    def all_stores(self) -> List[StoreConfig]:
        return list(self._load_all())

    def get_store(self, store_id: str) -> Optional[StoreConfig]:
        sid = (store_id or "").strip()
        for s in self._load_all():
            if s.store_id == sid:
                return s
        return None

    def get_store_by_phone(self, phone: str) -> Optional[StoreConfig]:
        p = normalize_phone(phone)
        if not p:
            return None
        for s in self._load_all():
            if s.phone_norm == p:
                return s
        return None

    def require_store_by_phone(self, phone: str) -> StoreConfig:
        cfg = self.get_store_by_phone(phone)
        if cfg is None:
            raise StoreNotFoundError(f"Store not found for {phone!r}")
        return cfg
