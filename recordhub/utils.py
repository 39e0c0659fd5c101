"""Utility functions shared by the recordhub server and client."""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from recordhub.resources import ResourceKind


_HTTP_SESSION: requests.Session | None = None


def _get_http_session() -> requests.Session:
    """Shared requests session with connection pooling.

    Retries are disabled: a failed write must surface to the caller instead
    of being replayed against the backing store.
    """
    global _HTTP_SESSION
    if _HTTP_SESSION is not None:
        return _HTTP_SESSION

    session = requests.Session()
    retry = Retry(total=0, connect=0, read=0, raise_on_status=False)
    adapter = HTTPAdapter(pool_connections=50, pool_maxsize=50, max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    _HTTP_SESSION = session
    return session


def header_to_field(header: str) -> str:
    """Turn a sheet header into its camelCase field name.

    ``"Location Name"`` -> ``"locationName"``, ``"AccountID"`` -> ``"accountID"``.
    """
    clean = re.sub(r"[^a-zA-Z0-9\s]", "", str(header).strip())
    if not clean:
        return ""
    clean = clean[0].lower() + clean[1:]
    return re.sub(r"\s+(.)", lambda m: m.group(1).upper(), clean)


def generate_id(prefix: str) -> str:
    suffix = uuid.uuid4().hex[:9]
    return prefix + (suffix.upper() if prefix.isupper() else suffix)


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def rows_to_records(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Rebuild records from a tabular payload, using headers as field names"""
    records = []
    for row in rows:
        record = {}
        for index, header in enumerate(headers):
            record[header] = row[index] if index < len(row) else ""
        records.append(record)
    return records


def records_to_rows(headers: Sequence[str], records: Iterable[Dict[str, Any]]) -> List[List[Any]]:
    return [[record.get(header, "") for header in headers] for record in records]


def parse_number(value: Any, integer: bool = False) -> int | float:
    """Lenient numeric parse; anything unparseable becomes 0"""
    try:
        number = float(str(value).replace(",", "").strip())
    except (TypeError, ValueError):
        return 0
    if number != number:  # NaN
        return 0
    return int(number) if integer else number


def coerce_record(kind: ResourceKind, record: Dict[str, Any]) -> Dict[str, Any]:
    coerced = dict(record)
    for name in kind.numeric_fields:
        if name in coerced:
            coerced[name] = parse_number(coerced[name])
    for name in kind.integer_fields:
        if name in coerced:
            coerced[name] = parse_number(coerced[name], integer=True)
    return coerced


def find_record(records: Sequence[Dict[str, Any]], id_field: str, record_id: Any) -> Optional[Dict[str, Any]]:
    target = str(record_id).strip()
    for record in records:
        if str(record.get(id_field, "")).strip() == target:
            return record
    return None
