"""
Tests for RecordService reads, writes and login
"""

import pytest

from recordhub.errors import (
    AuthenticationError,
    FetchError,
    NotFoundError,
    ValidationError,
)
from recordhub.resources import ACCOUNTS, PRODUCTS_CACHE_KEY, TASKS, TICKETS
from recordhub.service import RecordService
from recordhub.store import MemoryTableStore
from recordhub.utils import rows_to_records


def _records(table):
    return rows_to_records(table["headers"], table["rows"])


class TestReads:

    def test_read_returns_headers_and_rows(self, service):
        table = service.read("getAccounts")

        assert table["headers"] == list(ACCOUNTS.headers)
        assert [row[0] for row in table["rows"]] == ["acc-1", "acc-2"]

    def test_missing_action_reads_tickets(self, service):
        table = service.read(None)

        assert table["headers"][0] == TICKETS.id_field
        assert table["rows"][0][0] == "TICKET-1"

    def test_unknown_action_is_rejected(self, service):
        with pytest.raises(ValidationError, match="Unknown GET action: getEverything"):
            service.read("getEverything")

    def test_second_read_is_served_from_cache(self, service, store):
        service.read("getTasks")
        store.append_row(TASKS.sheet, ["task-9", "Written behind the cache"])

        table = service.read("getTasks")

        assert len(table["rows"]) == 2

    def test_missing_sheet_is_created_empty(self, service, store):
        table = service.read("getFinancingLedger")

        assert table["rows"] == []
        assert store.read_table("FinancingLedger")[0][0] == "finance_id"

    def test_products_are_mapped_to_field_names(self, service):
        assert service.read("getProducts") == [
            {"Item": "Phone X", "Color": "Black", "Category": "Phones", "SubCategory": "Smart"}
        ]

    def test_products_missing_column_is_a_fetch_error(self, read_cache):
        service = RecordService(MemoryTableStore({"Products": [["Items", "Colors"]]}), read_cache)

        with pytest.raises(FetchError, match="Category"):
            service.read("getProducts")

        assert PRODUCTS_CACHE_KEY not in read_cache.store

    def test_products_with_short_rows_are_padded(self, read_cache):
        service = RecordService(MemoryTableStore({"Products": [
            ["Items", "Colors", "Category", "Sub-Category"],
            ["Phone X", "Black", "Phones"],
        ]}), read_cache)

        assert service.read("getProducts") == [
            {"Item": "Phone X", "Color": "Black", "Category": "Phones", "SubCategory": ""}
        ]


class TestWrites:

    def test_create_assigns_id_and_defaults(self, service):
        service.read("getTasks")

        result = service.write("addTask", {"Task Name": "Renew license"})

        assert result["message"] == "Task added successfully."
        assert result["id"].startswith("task-")
        created = [r for r in _records(service.read("getTasks")) if r["TaskID"] == result["id"]]
        assert created[0]["Task Name"] == "Renew license"
        assert created[0]["Status"] == "To Do"

    def test_ticket_ids_use_uppercase_suffix(self, service):
        result = service.write("addTicket", {"First Name": "Alan"})

        suffix = result["id"][len("TICKET-"):]
        assert result["id"].startswith("TICKET-")
        assert suffix == suffix.upper()

    def test_update_merges_into_existing_row(self, service):
        service.write("updateTask", {"TaskID": "task-1", "Status": "Completed"})

        task = [r for r in _records(service.read("getTasks")) if r["TaskID"] == "task-1"][0]
        assert task["Status"] == "Completed"
        assert task["Task Name"] == "Call vendor"
        assert task["Priority"] == "High"

    def test_account_update_accepts_camel_case_keys(self, service):
        service.write("updateAccount", {"accountID": "acc-1", "company": "Acme Two"})

        account = _records(service.read("getAccounts"))[0]
        assert account["Company"] == "Acme Two"
        assert account["Timestamp"] != "2024-01-01T00:00:00"

    def test_delete_removes_row(self, service):
        result = service.write("deleteTask", {"TaskID": "task-2"})

        assert result["message"] == "Task deleted successfully."
        assert [r["TaskID"] for r in _records(service.read("getTasks"))] == ["task-1"]

    def test_successful_write_invalidates_collection(self, service):
        service.read("getTasks")
        assert TASKS.cache_key in service.cache.store

        service.write("deleteTask", {"TaskID": "task-2"})

        assert TASKS.cache_key not in service.cache.store

    def test_failed_write_keeps_cached_copy(self, service):
        service.read("getTasks")

        with pytest.raises(NotFoundError, match="Task with ID task-404 not found."):
            service.write("updateTask", {"TaskID": "task-404", "Status": "Completed"})

        assert TASKS.cache_key in service.cache.store

    def test_missing_id_is_a_validation_error(self, service):
        with pytest.raises(ValidationError) as info:
            service.write("deleteTask", {})

        assert info.value.field_errors == {"TaskID": "Required."}

    def test_unknown_write_action(self, service):
        with pytest.raises(ValidationError, match="Unknown POST action"):
            service.write("dropTables", {})

    def test_write_to_one_collection_keeps_others_cached(self, service):
        service.read("getTasks")
        service.read("getAccounts")

        service.write("deleteTask", {"TaskID": "task-1"})

        assert ACCOUNTS.cache_key in service.cache.store


class TestLogin:

    def test_numeric_access_code_matches(self, service):
        user = service.login("1234", "Accounting")

        assert user["UserID"] == "u-1"
        assert user["Name"] == "Grace"

    def test_access_code_is_trimmed(self, service):
        assert service.login(" 9999 ", "Office")["UserID"] == "u-2"

    def test_wrong_role_is_rejected(self, service):
        with pytest.raises(AuthenticationError, match="Invalid access code"):
            service.login("1234", "Office")

    def test_missing_access_code(self, service):
        with pytest.raises(ValidationError, match="Access code is required."):
            service.login("", "Office")
