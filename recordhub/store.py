"""Backing store access.

The backing store is a sheet-like table service: each table's first row holds
the headers and every call is an independent round trip. Row numbers are
1-based and include the header row, so the first data row is row 2.
"""

from __future__ import annotations

import copy
import logging
from threading import RLock
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests

from recordhub.errors import NotFoundError, RecordHubError
from recordhub.utils import _get_http_session

logger = logging.getLogger(__name__)


class BackingStoreError(RecordHubError):
    status_code = 502


class TableStore:
    """Interface implemented by every backing store."""

    def read_table(self, name: str) -> List[List[Any]]:
        raise NotImplementedError

    def ensure_table(self, name: str, headers: Sequence[str]) -> None:
        raise NotImplementedError

    def append_row(self, name: str, row: Sequence[Any]) -> None:
        raise NotImplementedError

    def update_row(self, name: str, row_number: int, row: Sequence[Any]) -> None:
        raise NotImplementedError

    def delete_row(self, name: str, row_number: int) -> None:
        raise NotImplementedError


class MemoryTableStore(TableStore):
    def __init__(self, tables: Optional[Dict[str, List[List[Any]]]] = None):
        self._lock = RLock()
        self._tables: Dict[str, List[List[Any]]] = copy.deepcopy(tables or {})

    def _table(self, name: str) -> List[List[Any]]:
        table = self._tables.get(name)
        if table is None:
            raise NotFoundError(f"Table '{name}' does not exist")
        return table

    def _check_row(self, table: List[List[Any]], name: str, row_number: int) -> None:
        if row_number < 2 or row_number > len(table):
            raise NotFoundError(f"Row {row_number} does not exist in '{name}'")

    def read_table(self, name: str) -> List[List[Any]]:
        with self._lock:
            return copy.deepcopy(self._table(name))

    def ensure_table(self, name: str, headers: Sequence[str]) -> None:
        with self._lock:
            if name not in self._tables:
                self._tables[name] = [list(headers)]

    def append_row(self, name: str, row: Sequence[Any]) -> None:
        with self._lock:
            self._table(name).append(list(row))

    def update_row(self, name: str, row_number: int, row: Sequence[Any]) -> None:
        with self._lock:
            table = self._table(name)
            self._check_row(table, name, row_number)
            table[row_number - 1] = list(row)

    def delete_row(self, name: str, row_number: int) -> None:
        with self._lock:
            table = self._table(name)
            self._check_row(table, name, row_number)
            del table[row_number - 1]


class RemoteTableStore(TableStore):
    """Table service reached over HTTP.

    - ``GET    {base}/tables/{name}``            -> ``{"values": [[...], ...]}``
    - ``PUT    {base}/tables/{name}``            creates the table if missing
    - ``POST   {base}/tables/{name}/rows``       appends ``{"values": [...]}``
    - ``PUT    {base}/tables/{name}/rows/{n}``   overwrites row ``n``
    - ``DELETE {base}/tables/{name}/rows/{n}``   deletes row ``n``
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or _get_http_session()

    def _url(self, name: str, *parts: Any) -> str:
        path = "/".join([quote(name, safe="")] + [str(p) for p in parts])
        return f"{self.base_url}/tables/{path}"

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise BackingStoreError(f"Backing store unreachable: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"Not found: {url}")
        if not response.ok:
            raise BackingStoreError(
                f"Backing store returned {response.status_code}: {response.text[:200]}"
            )
        if not response.content:
            return {}
        return response.json()

    def read_table(self, name: str) -> List[List[Any]]:
        data = self._request("GET", self._url(name))
        return data.get("values", [])

    def ensure_table(self, name: str, headers: Sequence[str]) -> None:
        self._request("PUT", self._url(name), json={"headers": list(headers)})

    def append_row(self, name: str, row: Sequence[Any]) -> None:
        self._request("POST", self._url(name, "rows"), json={"values": list(row)})

    def update_row(self, name: str, row_number: int, row: Sequence[Any]) -> None:
        self._request("PUT", self._url(name, "rows", row_number), json={"values": list(row)})

    def delete_row(self, name: str, row_number: int) -> None:
        self._request("DELETE", self._url(name, "rows", row_number))
