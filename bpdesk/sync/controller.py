"""Keeps the in-memory blueprint list in step with the record store.

Patches are optimistic: the local record changes immediately and the remote
update runs in the background. When a remote patch fails the whole
collection is fetched again and replaces local state; there is no per-field
rollback and no merge. Creates and deletes wait for the store first.

Records are addressed by list index at the edges (that is what the view and
the CLI show) but resolved to their store id before any remote call, and
located again by id when the result is applied.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import replace
from pathlib import Path
from typing import Any

from ..errors import Aborted, ShapeError, StoreError, TransportUnreachable
from ..images import NotAnImage, image_file_to_data_uri
from ..sample import sample_blueprints
from ..shape import clamp_int, coerce_recipe_item, parse_json_text, to_json_string, to_text, truthy
from ..state import AppState
from ..types import BODY_FIELDS, FLAG_FIELDS, TEXT_FIELDS, Blueprint, RecipeItem
from ..view import Page
from .records import RecordStoreClient

logger = logging.getLogger(__name__)

NEW_BLUEPRINT_NAME = "New Blueprint"


def new_blueprint_template() -> Blueprint:
    return Blueprint(
        name=NEW_BLUEPRINT_NAME,
        crafting_recipe=[RecipeItem()],
        available=True,
    )


def copy_name(name: str) -> str:
    return f"{name} (Copy)" if name else "Copy"


def coerce_updates(updates: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial field mapping and coerce values to the record types."""
    coerced: dict[str, Any] = {}
    for key, value in updates.items():
        if key not in BODY_FIELDS:
            raise ValueError(f"unknown blueprint field: {key}")
        if key in TEXT_FIELDS:
            coerced[key] = to_text(value)
        elif key in FLAG_FIELDS:
            coerced[key] = truthy(value)
        else:
            coerced[key] = [
                replace(r) if isinstance(r, RecipeItem) else coerce_recipe_item(r)
                for r in (value or [])
            ]
    return coerced


class SyncController:
    def __init__(
        self,
        client: RecordStoreClient,
        state: AppState | None = None,
        *,
        max_workers: int = 8,
    ) -> None:
        self.client = client
        self.state = state or AppState()
        self._lock = threading.RLock()
        self._generation = 0
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="bpdesk-sync",
        )
        self._pending: set[Future[Any]] = set()
        self._pending_lock = threading.Lock()

    def __enter__(self) -> SyncController:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.wait_pending()
        self._executor.shutdown(wait=True)

    # -- background work -------------------------------------------------

    def _track(self, future: Future[Any]) -> Future[Any]:
        with self._pending_lock:
            self._pending.add(future)

        def _done(f: Future[Any]) -> None:
            with self._pending_lock:
                self._pending.discard(f)
            if not f.cancelled() and f.exception() is not None:
                logger.error("background sync task failed", exc_info=f.exception())

        future.add_done_callback(_done)
        return future

    def wait_pending(self) -> None:
        """Block until every fire-and-forget patch, and its reconciliation, is done."""
        while True:
            with self._pending_lock:
                pending = list(self._pending)
            if not pending:
                return
            wait(pending)

    # -- helpers ---------------------------------------------------------

    def _at(self, index: int) -> Blueprint:
        if index < 0 or index >= len(self.state.blueprints):
            raise IndexError(f"no blueprint at index {index}")
        return self.state.blueprints[index]

    def _report_failure(self, action: str, exc: StoreError) -> None:
        if isinstance(exc, Aborted):
            return
        with self._lock:
            if isinstance(exc, TransportUnreachable):
                self.state.unreachable = True
                self.state.set_status("err", f"{action}: service unreachable ({exc})")
            else:
                self.state.set_status("err", f"{action}: {exc}")
        logger.warning("%s: %s", action, exc)

    def _supersede(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    # -- bootstrap -------------------------------------------------------

    def bootstrap(self, *, announce: bool = True) -> bool:
        """Fetch the full collection and install it as local truth.

        Returns False when the fetch failed or a newer fetch superseded it.
        """
        generation = self._supersede()

        def is_current() -> bool:
            return generation == self._generation

        try:
            records = self.client.list(should_continue=is_current)
        except Aborted:
            logger.debug("bootstrap %d superseded before completion", generation)
            return False
        except TransportUnreachable as exc:
            with self._lock:
                if not is_current():
                    return False
                self.state.unreachable = True
                self.state.set_status(
                    "err",
                    f"Service unreachable ({exc}). Start the record store and retry.",
                )
            logger.warning("record store unreachable: %s", exc)
            return False
        except StoreError as exc:
            with self._lock:
                if not is_current():
                    return False
                self.state.set_status("err", f"Could not load blueprints: {exc}")
            logger.warning("bootstrap failed: %s", exc)
            return False

        with self._lock:
            if not is_current():
                logger.debug("discarding stale bootstrap result (generation %d)", generation)
                return False
            self.state.blueprints = records
            self.state.unreachable = False
            self.state.clamp_selection()
            if announce:
                self.state.set_status("info", f"Loaded {len(records)} blueprints.")
        return True

    # -- single-record mutations -----------------------------------------

    def create(self, blueprint: Blueprint) -> Blueprint | None:
        try:
            created = self.client.create(blueprint.without_id())
        except StoreError as exc:
            self._report_failure("Create failed", exc)
            return None
        with self._lock:
            self.state.blueprints.append(created)
        return created

    def new_blueprint(self) -> Blueprint | None:
        created = self.create(new_blueprint_template())
        if created is None:
            return None
        with self._lock:
            self.state.selected_index = self.state.index_of_id(created.id or "")
            self.state.set_status("ok", "Added a new blueprint.")
        return created

    def patch(self, index: int, updates: dict[str, Any]) -> Future[None] | None:
        """Apply ``updates`` locally now and persist them in the background.

        Records that were never persisted are left alone and nothing is sent.
        """
        fields = coerce_updates(updates)
        with self._lock:
            current = self._at(index)
            if not current.id:
                return None
            record_id = current.id
            self.state.blueprints[index] = replace(current, **fields)
        return self._track(self._executor.submit(self._remote_patch, record_id, fields))

    def _remote_patch(self, record_id: str, fields: dict[str, Any]) -> None:
        try:
            self.client.update(record_id, fields)
        except StoreError as exc:
            self._report_failure("Save failed", exc)
            if not isinstance(exc, Aborted):
                self.bootstrap(announce=False)

    def add_recipe_item(self, index: int) -> Future[None] | None:
        with self._lock:
            recipe = [replace(r) for r in self._at(index).crafting_recipe]
        recipe.append(RecipeItem())
        return self.patch(index, {"crafting_recipe": recipe})

    def update_recipe_item(
        self,
        index: int,
        row: int,
        *,
        item: str | None = None,
        quantity: Any = None,
    ) -> Future[None] | None:
        with self._lock:
            recipe = [replace(r) for r in self._at(index).crafting_recipe]
        if row < 0 or row >= len(recipe):
            raise IndexError(f"no recipe row {row}")
        if item is not None:
            recipe[row].item = item
        if quantity is not None:
            recipe[row].quantity = clamp_int(quantity, 0)
        return self.patch(index, {"crafting_recipe": recipe})

    def remove_recipe_item(self, index: int, row: int) -> Future[None] | None:
        with self._lock:
            recipe = [replace(r) for r in self._at(index).crafting_recipe]
        if row < 0 or row >= len(recipe):
            raise IndexError(f"no recipe row {row}")
        del recipe[row]
        return self.patch(index, {"crafting_recipe": recipe})

    def set_image_from_file(self, index: int, path: Path) -> Future[None] | None:
        try:
            uri = image_file_to_data_uri(path)
        except NotAnImage as exc:
            with self._lock:
                self.state.set_status("warn", str(exc))
            return None
        except OSError as exc:
            with self._lock:
                self.state.set_status("err", f"Could not read image: {exc}")
            return None
        return self.patch(index, {"image": uri})

    def delete(self, index: int) -> bool:
        with self._lock:
            target = self._at(index)
            if not target.id:
                return False
            record_id = target.id
            name = target.name or "blueprint"
        try:
            self.client.delete(record_id)
        except StoreError as exc:
            self._report_failure("Delete failed", exc)
            return False
        with self._lock:
            removed_at = self.state.index_of_id(record_id)
            if removed_at == -1:
                # a reconciliation already dropped it
                return True
            del self.state.blueprints[removed_at]
            selected = self.state.selected_index
            if selected == removed_at:
                self.state.selected_index = min(removed_at, len(self.state.blueprints) - 1)
            elif selected > removed_at:
                self.state.selected_index = selected - 1
            self.state.set_status("ok", f'Deleted "{name}".')
        return True

    def duplicate(self) -> Blueprint | None:
        with self._lock:
            source_index = self.state.selected_index
            if source_index < 0:
                return None
            source = self._at(source_index)
            source_id = source.id
            draft = source.without_id()
        draft.name = copy_name(draft.name)
        try:
            created = self.client.create(draft)
        except StoreError as exc:
            self._report_failure("Duplicate failed", exc)
            return None
        with self._lock:
            position = self.state.index_of_id(source_id) if source_id else source_index
            if position == -1:
                position = min(source_index, len(self.state.blueprints) - 1)
            self.state.blueprints.insert(position + 1, created)
            self.state.selected_index = position + 1
            self.state.set_status("ok", "Duplicated.")
        return created

    # -- bulk replace ----------------------------------------------------

    def replace_all(self, blueprints: list[Blueprint], success_text: str) -> bool:
        """Delete every remote record, then recreate ``blueprints`` in order.

        Not atomic: a failure part-way leaves the store partially replaced and
        local state as it was. The error is reported, nothing is rolled back.
        """
        try:
            existing = self.client.list_ids()
            deletes = [self._executor.submit(self.client.delete, rid) for rid in existing]
            wait(deletes)
            for future in deletes:
                future.result()
            created: list[Blueprint] = []
            for blueprint in blueprints:
                created.append(self.client.create(blueprint.without_id()))
        except StoreError as exc:
            self._report_failure("Import failed", exc)
            return False
        self._supersede()
        with self._lock:
            self.state.blueprints = created
            self.state.selected_index = -1
            self.state.view.page = 1
            self.state.unreachable = False
            self.state.set_status("ok", success_text)
        logger.info("replaced collection with %d blueprints", len(created))
        return True

    def import_file(self, path: Path) -> bool:
        try:
            records = parse_json_text(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, ShapeError) as exc:
            with self._lock:
                self.state.set_status("err", f"Could not load JSON: {exc}")
            return False
        return self.replace_all(records, f"Loaded {path.name}")

    def import_text(self, text: str) -> bool:
        try:
            records = parse_json_text(text)
        except ShapeError as exc:
            with self._lock:
                self.state.set_status("err", f"Parse error: {exc}")
            return False
        return self.replace_all(records, "Loaded pasted JSON.")

    def reset_to_sample(self) -> bool:
        if not self.replace_all(sample_blueprints(), "Reset to sample."):
            return False
        with self._lock:
            self.state.view.reset()
        return True

    # -- export ----------------------------------------------------------

    def export_json(self) -> str:
        with self._lock:
            return to_json_string(self.state.blueprints)

    def export_file(self, path: Path) -> bool:
        text = self.export_json()
        try:
            path.write_text(text + "\n", encoding="utf-8")
        except OSError as exc:
            with self._lock:
                self.state.set_status("err", f"Could not write {path}: {exc}")
            return False
        with self._lock:
            self.state.set_status(
                "ok", f"Exported {len(self.state.blueprints)} blueprints to {path}."
            )
        return True

    # -- selection and view ----------------------------------------------

    def select(self, index: int) -> None:
        with self._lock:
            self.state.select(index)

    def set_search(self, query: str) -> None:
        with self._lock:
            self.state.view.set_search(query, self.state.blueprints, self.state.selected_index)

    def set_availability(self, availability: str) -> None:
        with self._lock:
            self.state.view.set_availability(
                availability, self.state.blueprints, self.state.selected_index
            )

    def set_page_size(self, size: int) -> None:
        with self._lock:
            self.state.view.set_page_size(size)

    def visible_page(self) -> Page:
        with self._lock:
            return self.state.view.current_page(self.state.blueprints)
