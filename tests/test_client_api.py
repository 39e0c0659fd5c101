"""
Tests for ApiClient against a mocked requests session
"""

from unittest.mock import MagicMock

import pytest
import requests

from recordhub.client.api import ApiClient, handle_response
from recordhub.errors import ApiError
from recordhub.resources import ACCOUNTS, TASKS


def _response(status_code=200, body=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.text = text
    if body is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def api(session):
    return ApiClient("http://dashboard.local/api", timeout=5, session=session)


class TestHandleResponse:

    def test_success_unwraps_data(self):
        assert handle_response(_response(body={"status": "success", "data": [1]})) == [1]

    def test_write_success_returns_envelope(self):
        body = {"status": "success", "message": "Task added successfully.", "id": "task-1"}

        assert handle_response(_response(body=body)) == body

    def test_error_envelope_on_200(self):
        with pytest.raises(ApiError, match="Sheet locked"):
            handle_response(_response(body={"status": "error", "message": "Sheet locked"}))

    def test_http_error_uses_envelope_message(self):
        with pytest.raises(ApiError) as info:
            handle_response(_response(404, body={"status": "error", "message": "Task with ID x not found."}))

        assert info.value.status_code == 404
        assert info.value.message == "Task with ID x not found."

    def test_http_error_without_body(self):
        with pytest.raises(ApiError, match="HTTP error! status: 502"):
            handle_response(_response(502))


class TestApiClient:

    @pytest.mark.asyncio
    async def test_fetch_builds_coerced_records(self, api, session):
        session.get.return_value = _response(body={"status": "success", "data": {
            "headers": ["AccountID", "Company", "Amount Due"],
            "rows": [["acc-1", "Acme", "120.50"], ["", "", ""], ["acc-2", "Safe Co"]],
        }})

        records = await api.fetch(ACCOUNTS)

        assert records == [
            {"AccountID": "acc-1", "Company": "Acme", "Amount Due": 120.5},
            {"AccountID": "acc-2", "Company": "Safe Co", "Amount Due": 0},
        ]
        session.get.assert_called_once_with(
            "http://dashboard.local/api", params={"action": "getAccounts"}, timeout=5
        )

    @pytest.mark.asyncio
    async def test_fetch_rejects_non_tabular_payload(self, api, session):
        session.get.return_value = _response(body={"status": "success", "data": [{"TaskID": "task-1"}]})

        with pytest.raises(ApiError, match="Unexpected tasks payload"):
            await api.fetch(TASKS)

    @pytest.mark.asyncio
    async def test_update_posts_action_envelope(self, api, session):
        session.post.return_value = _response(body={"status": "success", "message": "ok", "id": "task-1"})

        result = await api.update(TASKS, {"TaskID": "task-1", "Status": "Completed"})

        assert result["id"] == "task-1"
        session.post.assert_called_once_with(
            "http://dashboard.local/api",
            json={"action": "updateTask", "payload": {"TaskID": "task-1", "Status": "Completed"}},
            timeout=5,
        )

    @pytest.mark.asyncio
    async def test_delete_sends_only_the_id(self, api, session):
        session.post.return_value = _response(body={"status": "success"})

        await api.delete(TASKS, "task-2")

        assert session.post.call_args.kwargs["json"] == {
            "action": "deleteTask", "payload": {"TaskID": "task-2"}
        }

    @pytest.mark.asyncio
    async def test_network_error(self, api, session):
        session.post.side_effect = requests.Timeout("timed out")

        with pytest.raises(ApiError, match="Network error"):
            await api.create(TASKS, {"Task Name": "x"})

    @pytest.mark.asyncio
    async def test_login(self, api, session):
        session.get.return_value = _response(body={"status": "success", "data": {
            "UserID": "u-1", "Name": "Grace", "AccessCode": 1234, "Role": "Accounting",
        }})

        user = await api.login("1234", "Accounting")

        assert user.UserID == "u-1"
        assert user.AccessCode == "1234"

    @pytest.mark.asyncio
    async def test_login_without_user(self, api, session):
        session.get.return_value = _response(body={"status": "success", "data": {}})

        with pytest.raises(ApiError, match="No user data returned"):
            await api.login("1234", "Accounting")
