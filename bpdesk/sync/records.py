"""Typed client for a PocketBase records collection.

Only the plain record fields travel over the wire; PocketBase meta-fields
(``collectionId``, ``created``, ``updated``, ...) are dropped on the way in.
"""

from __future__ import annotations

import logging
from typing import Any, Callable
from urllib.parse import quote, urlencode

from ..errors import Aborted, ApplicationError
from ..shape import coerce_blueprint
from ..types import BODY_FIELDS, Blueprint, RecipeItem
from . import http_client

logger = logging.getLogger(__name__)

# PocketBase caps perPage; larger batches are rejected.
DEFAULT_BATCH_SIZE = 200


def _error_message(status: int, payload: dict[str, Any] | None) -> str:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return f"request failed with status {status}"


def _raise_for_status(status: int, payload: dict[str, Any] | None) -> None:
    if 200 <= status < 300:
        return
    data = payload.get("data") if isinstance(payload, dict) else None
    raise ApplicationError(
        status,
        _error_message(status, payload),
        data if isinstance(data, dict) else None,
    )


def _body_from_fields(fields: dict[str, Any]) -> dict[str, Any]:
    body: dict[str, Any] = {}
    for key, value in fields.items():
        if key not in BODY_FIELDS:
            continue
        if key == "crafting_recipe":
            value = [r.to_dict() if isinstance(r, RecipeItem) else r for r in value]
        body[key] = value
    return body


class RecordStoreClient:
    def __init__(
        self,
        base_url: str,
        collection: str = "blueprints",
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        timeout_s: float = 10.0,
    ) -> None:
        self.base_url = http_client.build_base_url(base_url)
        if not self.base_url:
            raise ValueError("record store url is empty")
        self.collection = collection
        self.batch_size = max(1, int(batch_size))
        self.timeout_s = timeout_s

    @property
    def records_url(self) -> str:
        return f"{self.base_url}/api/collections/{quote(self.collection, safe='')}/records"

    def _record_url(self, record_id: str) -> str:
        return f"{self.records_url}/{quote(record_id, safe='')}"

    def _request(
        self,
        method: str,
        url: str,
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        status, payload = http_client.request_json(
            method,
            url,
            body=body,
            timeout_s=self.timeout_s,
        )
        _raise_for_status(status, payload)
        return payload

    def _list_raw(
        self,
        *,
        fields: str | None = None,
        should_continue: Callable[[], bool] | None = None,
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            if should_continue is not None and not should_continue():
                raise Aborted("list superseded")
            params: dict[str, Any] = {
                "page": page,
                "perPage": self.batch_size,
                "skipTotal": 1,
            }
            if fields:
                params["fields"] = fields
            payload = self._request("GET", f"{self.records_url}?{urlencode(params)}")
            batch = payload.get("items") if payload else None
            if not isinstance(batch, list):
                raise ApplicationError(200, "invalid list response")
            items.extend(item for item in batch if isinstance(item, dict))
            if len(batch) < self.batch_size:
                break
            page += 1
        if should_continue is not None and not should_continue():
            raise Aborted("list superseded")
        return items

    def list(self, *, should_continue: Callable[[], bool] | None = None) -> list[Blueprint]:
        """Fetch the whole collection, batch by batch, in server order."""
        raw = self._list_raw(should_continue=should_continue)
        logger.debug("fetched %d records from %s", len(raw), self.collection)
        return [coerce_blueprint(item) for item in raw]

    def list_ids(self) -> list[str]:
        raw = self._list_raw(fields="id")
        return [str(item["id"]) for item in raw if item.get("id")]

    def create(self, blueprint: Blueprint) -> Blueprint:
        payload = self._request("POST", self.records_url, body=blueprint.to_body())
        created = coerce_blueprint(payload)
        if not created.id:
            raise ApplicationError(200, "store did not return a record id")
        return created

    def update(self, record_id: str, fields: dict[str, Any]) -> Blueprint:
        payload = self._request("PATCH", self._record_url(record_id), body=_body_from_fields(fields))
        return coerce_blueprint(payload)

    def delete(self, record_id: str) -> None:
        self._request("DELETE", self._record_url(record_id))
