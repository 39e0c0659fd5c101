"""
Client session: the views a user can open and their collections
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from recordhub.client.api import ApiClient
from recordhub.client.optimistic import OptimisticCollection, Records
from recordhub.client.sync import SyncCoordinator
from recordhub.client.validation import validate_form
from recordhub.config import Config
from recordhub.errors import RecordHubError, ValidationError
from recordhub.models import UserProfile
from recordhub.resources import ACCOUNTS, CONTACTS, FINANCING, TASKS, TICKETS, get_kind

logger = logging.getLogger(__name__)

ROLE_VIEWS: Dict[str, Tuple[str, ...]] = {
    "Office": (TICKETS.name, FINANCING.name),
    "Accounting": (ACCOUNTS.name, TASKS.name, CONTACTS.name),
}


class DashboardSession:
    """State of one logged-in user.

    All collections share a single SyncCoordinator, so the status shown to
    the user covers every in-flight change regardless of view.
    """

    def __init__(
        self,
        user: UserProfile,
        api: ApiClient,
        coordinator: Optional[SyncCoordinator] = None,
    ):
        self.user = user
        self.api = api
        self.coordinator = coordinator or SyncCoordinator(Config.SYNC_REVERT_DELAY_SECONDS)
        self.views: Tuple[str, ...] = ROLE_VIEWS.get(user.Role, ())
        self.collections: Dict[str, OptimisticCollection] = {
            view: OptimisticCollection(get_kind(view), api, self.coordinator)
            for view in self.views
        }
        self.load_errors: Dict[str, str] = {}
        self.active_view: Optional[str] = self.views[0] if self.views else None
        self.products: Optional[List[Dict[str, Any]]] = None

    @classmethod
    async def login(
        cls,
        api: ApiClient,
        access_code: str,
        role: str,
        coordinator: Optional[SyncCoordinator] = None,
    ) -> "DashboardSession":
        user = await api.login(access_code, role)
        logger.info("User %s logged in as %s", user.UserID, user.Role)
        return cls(user, api, coordinator)

    def collection(self, view: str) -> OptimisticCollection:
        try:
            return self.collections[view]
        except KeyError:
            raise ValidationError(
                f"View '{view}' is not available for role {self.user.Role or 'unknown'}."
            ) from None

    async def open_view(self, view: str) -> Records:
        """Switch to ``view``, loading it the first time it is opened."""
        collection = self.collection(view)
        self.active_view = view
        if collection.loaded or view in self.load_errors:
            return collection.records
        return await self._load(view)

    async def retry(self, view: str) -> Records:
        """Manual reload after a failed initial load."""
        return await self._load(view)

    async def _load(self, view: str) -> Records:
        collection = self.collection(view)
        self.load_errors.pop(view, None)
        try:
            return await collection.load()
        except RecordHubError as e:
            self.load_errors[view] = f"Failed to load data: {e.message}"
            logger.warning("Loading %s failed: %s", view, e.message)
            return collection.records

    async def load_products(self) -> List[Dict[str, Any]]:
        if self.products is None:
            self.products = await self.api.fetch_products()
        return self.products

    async def save(self, view: str, form: Dict[str, Any], record_id: Optional[str] = None) -> Any:
        """Create a record, or update ``record_id`` with the form's fields.

        Invalid forms raise ValidationError before anything is submitted.
        """
        collection = self.collection(view)
        if record_id is None:
            validate_form(collection.kind, form)
            return await collection.create(form)

        current = collection.get(record_id) or {}
        validate_form(collection.kind, {**current, **form})
        return await collection.update(record_id, form)

    async def change_status(self, view: str, record_id: str, status: str) -> Any:
        return await self.collection(view).change_status(record_id, status)

    async def delete(self, view: str, record_id: str) -> Any:
        return await self.collection(view).delete(record_id)
