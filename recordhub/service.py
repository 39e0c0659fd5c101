"""Read and write handlers sitting between the routes and the backing store.

Reads go through the read-through cache, one cache key per collection.
Writes hit the backing store directly and invalidate the collection's key
only once the write has succeeded.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from recordhub.cache import ReadThroughCache
from recordhub.errors import (
    AuthenticationError,
    NotFoundError,
    RecordHubError,
    ValidationError,
)
from recordhub.resources import (
    DEFAULT_HEADERS,
    PRODUCTS_CACHE_KEY,
    PRODUCTS_SHEET,
    READ_ACTIONS,
    TICKETS,
    USERS_SHEET,
    WRITE_ACTIONS,
    ResourceKind,
)
from recordhub.store import BackingStoreError, TableStore
from recordhub.utils import generate_id, header_to_field, now_iso, rows_to_records

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = {
    "Items": "Item",
    "Colors": "Color",
    "Category": "Category",
    "Sub-Category": "SubCategory",
}


def _cell(value: Any) -> Any:
    return "" if value is None else value


class RecordService:
    def __init__(self, store: TableStore, cache: ReadThroughCache):
        self.store = store
        self.cache = cache

    # ==================== Reads ====================

    def read(self, action: Optional[str] = None) -> Any:
        if action == "getProducts":
            return self.cache.get_or_populate(PRODUCTS_CACHE_KEY, self._load_products)

        if not action:
            kind = TICKETS
        elif action in READ_ACTIONS:
            kind = READ_ACTIONS[action]
        else:
            raise ValidationError(f"Unknown GET action: {action}")

        return self.cache.get_or_populate(kind.cache_key, lambda: self._load_table(kind))

    def _sheet(self, name: str) -> List[List[Any]]:
        self.store.ensure_table(name, DEFAULT_HEADERS.get(name, ()))
        return self.store.read_table(name)

    def _load_table(self, kind: ResourceKind) -> Dict[str, Any]:
        values = self._sheet(kind.sheet)
        headers = list(values[0]) if values else []
        return {"headers": headers, "rows": [list(row) for row in values[1:]]}

    def _load_products(self) -> List[Dict[str, Any]]:
        values = self._sheet(PRODUCTS_SHEET)
        headers = list(values[0]) if values else []
        missing = [h for h in PRODUCT_COLUMNS if h not in headers]
        if missing:
            raise BackingStoreError(
                f"Missing columns in '{PRODUCTS_SHEET}' sheet: {', '.join(missing)}"
            )
        return [
            {name: record[h] for h, name in PRODUCT_COLUMNS.items()}
            for record in rows_to_records(headers, values[1:])
        ]

    # ==================== Writes ====================

    def write(self, action: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if action not in WRITE_ACTIONS:
            raise ValidationError(f"Unknown POST action: {action}")

        kind, op = WRITE_ACTIONS[action]
        handler = {
            "create": self._create,
            "update": self._update,
            "delete": self._delete,
        }[op]

        try:
            result = handler(kind, dict(payload or {}))
        except RecordHubError as e:
            # Cache stays as it was: stale but consistent.
            logger.warning("Write %s failed: %s", action, e)
            raise

        self.cache.invalidate(kind.cache_key)
        return result

    def _headers(self, kind: ResourceKind) -> Tuple[List[str], List[List[Any]]]:
        values = self._sheet(kind.sheet)
        if not values:
            raise BackingStoreError(f"Sheet '{kind.sheet}' has no header row")
        return [str(h) for h in values[0]], values

    def _normalize(self, kind: ResourceKind, headers: Sequence[str], payload: Dict[str, Any]) -> Dict[str, Any]:
        if not kind.camel_case_keys:
            return payload
        by_field = {header_to_field(h): h for h in headers}
        data = {}
        for key, value in payload.items():
            if key in headers:
                data[key] = value
            elif key in by_field:
                data[by_field[key]] = value
        return data

    def _locate(self, kind: ResourceKind, headers: Sequence[str], values: List[List[Any]], record_id: Any) -> Tuple[int, List[Any]]:
        if kind.id_field not in headers:
            raise BackingStoreError(
                f'Header "{kind.id_field}" not found in sheet "{kind.sheet}".'
            )
        id_index = list(headers).index(kind.id_field)
        target = str(record_id).strip()
        for offset, row in enumerate(values[1:]):
            if id_index < len(row) and str(row[id_index]).strip() == target:
                return offset + 2, list(row)
        raise NotFoundError(f"{kind.label} with ID {record_id} not found.")

    def _require_id(self, kind: ResourceKind, data: Dict[str, Any], purpose: str) -> str:
        record_id = data.get(kind.id_field)
        if record_id is None or not str(record_id).strip():
            raise ValidationError(
                f"{kind.id_field} is required for {purpose}.",
                {kind.id_field: "Required."},
            )
        return str(record_id).strip()

    def _create(self, kind: ResourceKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers, _ = self._headers(kind)
        data = self._normalize(kind, headers, payload)

        new_id = generate_id(kind.id_prefix)
        data[kind.id_field] = new_id
        now = now_iso()
        for name in kind.created_fields:
            data[name] = now
        if kind.status_field and kind.default_status and not data.get(kind.status_field):
            data[kind.status_field] = kind.default_status

        self.store.append_row(kind.sheet, [_cell(data.get(h)) for h in headers])
        logger.info("Added %s %s", kind.name, new_id)
        return {"message": f"{kind.label} added successfully.", "id": new_id}

    def _update(self, kind: ResourceKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers, values = self._headers(kind)
        data = self._normalize(kind, headers, payload)
        record_id = self._require_id(kind, data, "update")
        row_number, existing = self._locate(kind, headers, values, record_id)

        now = now_iso()
        for name in kind.updated_fields:
            data[name] = now

        existing = existing + [""] * (len(headers) - len(existing))
        new_row = [
            _cell(data[h]) if h in data else existing[i]
            for i, h in enumerate(headers)
        ]
        self.store.update_row(kind.sheet, row_number, new_row)
        logger.info("Updated %s %s", kind.name, record_id)
        return {"message": f"{kind.label} updated successfully.", "id": record_id}

    def _delete(self, kind: ResourceKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        headers, values = self._headers(kind)
        data = self._normalize(kind, headers, payload)
        record_id = self._require_id(kind, data, "deletion")
        row_number, _ = self._locate(kind, headers, values, record_id)

        self.store.delete_row(kind.sheet, row_number)
        logger.info("Deleted %s %s", kind.name, record_id)
        return {"message": f"{kind.label} deleted successfully.", "id": record_id}

    # ==================== Auth ====================

    def login(self, access_code: Optional[str], role: Optional[str]) -> Dict[str, Any]:
        if not access_code:
            raise ValidationError("Access code is required.", {"accessCode": "Required."})
        if not role:
            raise ValidationError("Role is required.", {"role": "Required."})

        values = self._sheet(USERS_SHEET)
        headers = list(values[0]) if values else []
        for column in ("AccessCode", "Role"):
            if column not in headers:
                raise BackingStoreError(f"{column} column not found in Users sheet.")
        code_index = headers.index("AccessCode")
        role_index = headers.index("Role")

        for row in values[1:]:
            row = list(row) + [""] * (len(headers) - len(row))
            if (
                str(row[code_index]).strip() == str(access_code).strip()
                and str(row[role_index]).strip() == str(role).strip()
            ):
                return dict(zip(headers, row))

        raise AuthenticationError("Invalid access code for the selected portal.")
