"""
Shared fixtures for the recordhub test suite.

Server tests run against an in-memory table store seeded with a few rows per
sheet. Client tests use FakeApi, an in-process stand-in for ApiClient whose
calls can be held open or made to fail one at a time.
"""

from __future__ import annotations

import asyncio
import copy
from collections import defaultdict
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from recordhub import create_app
from recordhub.cache import CacheStore, ReadThroughCache
from recordhub.errors import ApiError
from recordhub.locks import InMemoryNamedMutex
from recordhub.models import UserProfile
from recordhub.resources import ACCOUNTS, TASKS, TICKETS, ResourceKind
from recordhub.service import RecordService
from recordhub.store import MemoryTableStore


def seed_tables() -> Dict[str, List[List[Any]]]:
    return {
        TICKETS.sheet: [
            list(TICKETS.headers),
            ["TICKET-1", "Refund", "Broken screen", "Ada", "Lovelace", "ada@example.com",
             "5551234567", "2024-01-02", "R-1", "199.99", "4242", "Phone", "Main St",
             "", "New", "", "", "", "", "", "2024-01-02T10:00:00"],
        ],
        ACCOUNTS.sheet: [
            list(ACCOUNTS.headers),
            ["acc-1", "Utility", "Electric", "Acme Power", "Main St", "1 Main St",
             "2025-01-01", "120.50", "Monthly", "120.50", "ACH", "", "", "", "",
             "Active", "2024-01-01T00:00:00", ""],
            ["acc-2", "Insurance", "", "Safe Co", "Depot", "2 Side St",
             "2025-06-01", "80", "Yearly", "960", "Card", "", "", "", "",
             "Inactive", "2024-01-01T00:00:00", ""],
        ],
        TASKS.sheet: [
            list(TASKS.headers),
            ["task-1", "Call vendor", "2024-02-01", "", "con-1", "acc-1", "To Do", "High", "", ""],
            ["task-2", "File report", "2024-02-10", "", "", "", "In Progress", "Low", "", ""],
        ],
        "Products": [
            ["Items", "Colors", "Category", "Sub-Category"],
            ["Phone X", "Black", "Phones", "Smart"],
        ],
        "Users": [
            ["UserID", "Name", "Email", "Phone", "AccessCode", "Role", "Location"],
            ["u-1", "Grace", "grace@example.com", "555", 1234, "Accounting", "HQ"],
            ["u-2", "Linus", "linus@example.com", "556", "9999", "Office", "Store 1"],
        ],
    }


@pytest.fixture
def store() -> MemoryTableStore:
    return MemoryTableStore(seed_tables())


@pytest.fixture
def read_cache() -> ReadThroughCache:
    return ReadThroughCache(CacheStore(), InMemoryNamedMutex(), ttl_seconds=300, lock_timeout=0.5)


@pytest.fixture
def service(store, read_cache) -> RecordService:
    return RecordService(store, read_cache)


@pytest.fixture
def client(service) -> TestClient:
    return TestClient(create_app(service))


class FakeApi:
    """In-process ApiClient double.

    ``plan(op, fail=..., hold=...)`` queues the behaviour of the next call to
    ``op``; a held call waits on the returned event before answering.
    """

    def __init__(self, records: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.server: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(records or {})
        self.calls: List[str] = []
        self.users: Dict[str, Dict[str, Any]] = {}
        self.products: List[Dict[str, Any]] = []
        self._plans: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self._next_id = 100

    def plan(self, op: str, fail: bool = False, hold: bool = False) -> Optional[asyncio.Event]:
        event = asyncio.Event() if hold else None
        self._plans[op].append({"fail": fail, "event": event})
        return event

    async def _enter(self, op: str) -> None:
        self.calls.append(op)
        plan = self._plans[op].pop(0) if self._plans[op] else {"fail": False, "event": None}
        if plan["event"] is not None:
            await plan["event"].wait()
        if plan["fail"]:
            raise ApiError(f"{op} rejected by server")

    async def login(self, access_code: str, role: str) -> UserProfile:
        await self._enter("login")
        user = self.users.get(access_code)
        if not user or user["Role"] != role:
            raise ApiError("Invalid access code for the selected portal.")
        return UserProfile(**user)

    async def fetch(self, kind: ResourceKind) -> List[Dict[str, Any]]:
        await self._enter("fetch")
        return copy.deepcopy(self.server.get(kind.name, []))

    async def fetch_products(self) -> List[Dict[str, Any]]:
        await self._enter("fetch_products")
        return copy.deepcopy(self.products)

    async def create(self, kind: ResourceKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        await self._enter("create")
        self._next_id += 1
        record = {**payload, kind.id_field: f"{kind.id_prefix}{self._next_id}"}
        self.server.setdefault(kind.name, []).append(record)
        return {"status": "success", "id": record[kind.id_field]}

    async def update(self, kind: ResourceKind, record: Dict[str, Any]) -> Dict[str, Any]:
        await self._enter("update")
        rows = self.server.get(kind.name, [])
        for index, row in enumerate(rows):
            if row[kind.id_field] == record[kind.id_field]:
                rows[index] = copy.deepcopy(record)
                return {"status": "success"}
        raise ApiError(f"{kind.label} with ID {record[kind.id_field]} not found.")

    async def delete(self, kind: ResourceKind, record_id: str) -> Dict[str, Any]:
        await self._enter("delete")
        rows = self.server.get(kind.name, [])
        remaining = [r for r in rows if r[kind.id_field] != record_id]
        if len(remaining) == len(rows):
            raise ApiError(f"{kind.label} ID not found for deletion: {record_id}")
        self.server[kind.name] = remaining
        return {"status": "success"}


def ticket(ticket_id: str, status: str = "New", **fields: Any) -> Dict[str, Any]:
    record = {header: "" for header in TICKETS.headers}
    record.update({"TicketID": ticket_id, "First Name": "Ada", "Status": status})
    record.update(fields)
    return record


@pytest.fixture
def tickets() -> List[Dict[str, Any]]:
    return [ticket("TICKET-1"), ticket("42", "In Progress"), ticket("TICKET-3", "Closed")]


@pytest.fixture
def fake_api(tickets) -> FakeApi:
    return FakeApi({TICKETS.name: tickets})
