from __future__ import annotations

from dataclasses import dataclass, field

from .types import Blueprint, StatusMessage, StatusType
from .view import ViewState


@dataclass
class AppState:
    """Everything the editor holds in memory; passed explicitly to each operation."""

    blueprints: list[Blueprint] = field(default_factory=list)
    selected_index: int = -1
    view: ViewState = field(default_factory=ViewState)
    status: StatusMessage | None = None
    unreachable: bool = False

    @property
    def selected(self) -> Blueprint | None:
        if 0 <= self.selected_index < len(self.blueprints):
            return self.blueprints[self.selected_index]
        return None

    def set_status(self, type: StatusType, text: str) -> None:
        self.status = StatusMessage(type, text)

    def select(self, index: int) -> None:
        if index < -1 or index >= len(self.blueprints):
            raise IndexError(f"no blueprint at index {index}")
        self.selected_index = index

    def index_of_id(self, record_id: str) -> int:
        for idx, bp in enumerate(self.blueprints):
            if bp.id == record_id:
                return idx
        return -1

    def clamp_selection(self) -> None:
        self.selected_index = min(self.selected_index, len(self.blueprints) - 1)
