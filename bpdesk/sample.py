from __future__ import annotations

from typing import Any

from .shape import normalize
from .types import Blueprint

SAMPLE_DATA: dict[str, Any] = {
    "blueprints": [
        {
            "name": "Anvil Mk2",
            "workshop": "Gunsmith 2",
            "image": "",
            "crafting_recipe": [
                {"item": "Metal Parts", "quantity": 6},
                {"item": "Mechanical Components", "quantity": 3},
            ],
            "available": True,
            "loot": True,
            "harvester_event": False,
            "quest_reward": False,
            "trials_reward": False,
        },
        {
            "name": "Heavy Shield",
            "workshop": "Gear Bench 3",
            "image": "",
            "crafting_recipe": [
                {"item": "Plastic Parts", "quantity": 8},
                {"item": "Advanced Electrical Components", "quantity": 2},
            ],
            "available": False,
            "loot": False,
            "harvester_event": True,
            "quest_reward": False,
            "trials_reward": False,
        },
        {
            "name": "Blaze Grenade",
            "workshop": "Explosives Station 1",
            "image": "",
            "crafting_recipe": [
                {"item": "Chemicals", "quantity": 4},
                {"item": "Canister", "quantity": 1},
            ],
            "available": True,
            "loot": False,
            "harvester_event": False,
            "quest_reward": True,
            "trials_reward": True,
        },
    ]
}


def sample_blueprints() -> list[Blueprint]:
    return normalize(SAMPLE_DATA)
