"""HTTP client for the recordhub wire contract.

Blocking ``requests`` calls are pushed to the thread pool so coroutines on
the session's event loop keep running while a call is in flight.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError
from starlette.concurrency import run_in_threadpool

from recordhub.errors import ApiError
from recordhub.models import TabularData, UserProfile
from recordhub.resources import ResourceKind
from recordhub.utils import _get_http_session, coerce_record, rows_to_records

logger = logging.getLogger(__name__)


def handle_response(response: requests.Response) -> Any:
    """Unwrap a response envelope or raise ApiError with its message."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if not response.ok:
        message = None
        if isinstance(body, dict):
            message = body.get("message")
        raise ApiError(
            message or response.text or f"HTTP error! status: {response.status_code}",
            status_code=response.status_code,
        )

    if not isinstance(body, dict):
        raise ApiError("Malformed response from server.")
    if body.get("status") == "success":
        return body.get("data", body)
    raise ApiError(body.get("message") or "An API error occurred.")


class ApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or _get_http_session()

    def _get(self, params: Dict[str, Any]) -> Any:
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise ApiError(f"Network error: {e}") from e
        return handle_response(response)

    def _post(self, action: str, payload: Dict[str, Any]) -> Any:
        logger.debug("POST %s", action)
        try:
            response = self.session.post(
                self.base_url,
                json={"action": action, "payload": payload},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(f"Network error: {e}") from e
        return handle_response(response)

    async def login(self, access_code: str, role: str) -> UserProfile:
        data = await run_in_threadpool(
            self._get, {"action": "login", "accessCode": access_code, "role": role}
        )
        if not isinstance(data, dict) or not data.get("UserID"):
            raise ApiError("Login failed: No user data returned.")
        return UserProfile(**data)

    async def fetch(self, kind: ResourceKind) -> List[Dict[str, Any]]:
        data = await run_in_threadpool(self._get, {"action": kind.read_action})
        try:
            table = TabularData.model_validate(data)
        except PydanticValidationError as e:
            raise ApiError(f"Unexpected {kind.name} payload: {e.error_count()} invalid field(s)") from e
        records = rows_to_records(table.headers, table.rows)
        # Rows without an ID are blank sheet lines.
        return [
            coerce_record(kind, record)
            for record in records
            if str(record.get(kind.id_field, "")).strip()
        ]

    async def fetch_products(self) -> List[Dict[str, Any]]:
        return await run_in_threadpool(self._get, {"action": "getProducts"})

    async def create(self, kind: ResourceKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        return await run_in_threadpool(self._post, kind.add_action, payload)

    async def update(self, kind: ResourceKind, record: Dict[str, Any]) -> Dict[str, Any]:
        return await run_in_threadpool(self._post, kind.update_action, record)

    async def delete(self, kind: ResourceKind, record_id: str) -> Dict[str, Any]:
        return await run_in_threadpool(self._post, kind.delete_action, {kind.id_field: record_id})
