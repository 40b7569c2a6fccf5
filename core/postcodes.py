"""Postcode to cost-category lookup for the base loan ceiling."""
from __future__ import annotations

import json
import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel

from foerdercheck.presets import DEFAULT_COST_CATEGORY, LOAN_CEILINGS

logger = logging.getLogger(__name__)

POSTCODE_MAP_ENV = "FOERDERCHECK_POSTCODE_MAP"
DEFAULT_POSTCODE_MAP = Path(__file__).resolve().parents[1] / "data" / "postcode_map.json"


class PostcodeCategory(BaseModel):
    postcode: str
    category: int
    ceiling_a: int  # cents
    ceiling_b: int  # cents


@lru_cache()
def load_postcode_map(path: str) -> Dict[str, int]:
    """Load ``{postcode: category}``; entries may also be ``{"costCategory": n}``."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.warning("postcode map %s not found, every postcode falls back to K%d", path, DEFAULT_COST_CATEGORY)
        return {}
    mapping: Dict[str, int] = {}
    for code, entry in raw.items():
        category = entry.get("costCategory") if isinstance(entry, dict) else entry
        if category in LOAN_CEILINGS:
            mapping[str(code)] = int(category)
    return mapping


def postcode_map_path() -> str:
    return os.environ.get(POSTCODE_MAP_ENV, str(DEFAULT_POSTCODE_MAP))


def resolve_postcode(postcode: Optional[str]) -> Optional[PostcodeCategory]:
    """Cost category and ceilings for a German postcode.

    Returns ``None`` for anything that is not a five digit postcode.  Valid
    postcodes missing from the map use the default category.
    """

    code = re.sub(r"\s", "", str(postcode or ""))
    if not re.fullmatch(r"\d{5}", code):
        return None
    category = load_postcode_map(postcode_map_path()).get(code, DEFAULT_COST_CATEGORY)
    limits = LOAN_CEILINGS[category]
    return PostcodeCategory(
        postcode=code,
        category=category,
        ceiling_a=limits["A"] * 100,
        ceiling_b=limits["B"] * 100,
    )
