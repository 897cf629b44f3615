"""Coercion of arbitrary JSON into the canonical blueprint collection.

Everything below the root is coerced rather than rejected, so any JSON object
(file import, pasted text, a record returned by the store) yields a
structurally valid collection. The root itself must be an object.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any

from .errors import ShapeError
from .types import Blueprint, RecipeItem

_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_RADIX_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")


def _to_number(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if _DECIMAL_RE.match(text):
            return float(text)
        if _RADIX_RE.match(text):
            return float(int(text, 0))
        if text.lstrip("+-") == "Infinity":
            return -math.inf if text.startswith("-") else math.inf
        return math.nan
    if isinstance(value, list):
        if not value:
            return 0.0
        if len(value) == 1:
            return _to_number(to_text(value[0]))
    return math.nan


def clamp_int(value: Any, fallback: int = 0) -> int:
    """Coerce to a non-negative integer, truncating toward zero.

    Non-numeric and non-finite input gives ``fallback``.
    """

    try:
        number = _to_number(value)
    except OverflowError:
        return fallback
    if not math.isfinite(number):
        return fallback
    return max(0, math.trunc(number))


def to_text(value: Any) -> str:
    """Generic string coercion, matching what a browser client would store."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, list):
        return ",".join(to_text(item) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def truthy(value: Any) -> bool:
    if isinstance(value, (list, dict)):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def coerce_recipe_item(raw: Any) -> RecipeItem:
    data = raw if isinstance(raw, dict) else {}
    return RecipeItem(
        item=to_text(data.get("item")),
        quantity=clamp_int(data.get("quantity"), 0),
    )


def coerce_blueprint(raw: Any) -> Blueprint:
    data = raw if isinstance(raw, dict) else {}
    recipe_raw = data.get("crafting_recipe")
    recipe = [coerce_recipe_item(r) for r in recipe_raw] if isinstance(recipe_raw, list) else []
    raw_id = data.get("id")
    return Blueprint(
        id=to_text(raw_id) if truthy(raw_id) else None,
        name=to_text(data.get("name")),
        workshop=to_text(data.get("workshop")),
        image=to_text(data.get("image")),
        crafting_recipe=recipe,
        available=truthy(data.get("available")),
        loot=truthy(data.get("loot")),
        harvester_event=truthy(data.get("harvester_event")),
        quest_reward=truthy(data.get("quest_reward")),
        trials_reward=truthy(data.get("trials_reward")),
    )


def normalize(raw: Any) -> list[Blueprint]:
    if not isinstance(raw, dict):
        raise ShapeError("Root must be an object")
    items = raw.get("blueprints")
    if not isinstance(items, list):
        return []
    return [coerce_blueprint(item) for item in items]


def parse_json_text(text: str) -> list[Blueprint]:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ShapeError(str(exc)) from exc
    return normalize(raw)


def to_export_dict(collection: list[Blueprint]) -> dict[str, Any]:
    # ids are store-specific; exported files must stay portable
    return {"blueprints": [bp.to_body() for bp in collection]}


def to_json_string(collection: list[Blueprint]) -> str:
    return json.dumps(to_export_dict(collection), ensure_ascii=False, indent=2)
