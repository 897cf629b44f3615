from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal

Availability = Literal["all", "available", "unavailable"]
StatusType = Literal["ok", "warn", "err", "info"]

AVAILABILITY_MODES: tuple[str, ...] = ("all", "available", "unavailable")

FLAG_FIELDS: tuple[str, ...] = (
    "available",
    "loot",
    "harvester_event",
    "quest_reward",
    "trials_reward",
)
TEXT_FIELDS: tuple[str, ...] = ("name", "workshop", "image")
BODY_FIELDS: tuple[str, ...] = (*TEXT_FIELDS, "crafting_recipe", *FLAG_FIELDS)


@dataclass
class RecipeItem:
    item: str = ""
    quantity: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"item": self.item, "quantity": self.quantity}


@dataclass
class Blueprint:
    name: str = ""
    workshop: str = ""
    image: str = ""
    crafting_recipe: list[RecipeItem] = field(default_factory=list)
    available: bool = False
    loot: bool = False
    harvester_event: bool = False
    quest_reward: bool = False
    trials_reward: bool = False
    # PocketBase record id; None while the record only exists locally.
    id: str | None = None

    def to_body(self) -> dict[str, Any]:
        """Plain field mapping without ``id``, as sent to the store and exported."""
        return {
            "name": self.name,
            "workshop": self.workshop,
            "image": self.image,
            "crafting_recipe": [r.to_dict() for r in self.crafting_recipe],
            "available": self.available,
            "loot": self.loot,
            "harvester_event": self.harvester_event,
            "quest_reward": self.quest_reward,
            "trials_reward": self.trials_reward,
        }

    def without_id(self) -> Blueprint:
        return replace(
            self,
            id=None,
            crafting_recipe=[replace(r) for r in self.crafting_recipe],
        )


@dataclass
class StatusMessage:
    type: StatusType
    text: str
