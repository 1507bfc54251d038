"""
Category Manager

Default categories are built in and always available. Signed-in users
may add their own, stored in the remote categories table and unique per
user, case-insensitively, across defaults AND custom names.

Name collisions are caught twice:
1. Before any write, against the categories currently loaded
2. By the backend's (user_id, name) constraint, whose error code is
   translated into the same "already exists" notification

Deleting a category never deletes transactions; the coordinator moves
them to "other" afterwards.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from money_tracker.config import SupabaseSettings, get_settings
from money_tracker.models.notification import NotificationBuilder
from money_tracker.models.session import AuthSession
from money_tracker.models.transaction import (
    DEFAULT_CATEGORIES,
    Category,
    CategoryDraft,
    CategoryPatch,
    CategoryStyle,
    utcnow,
)
from money_tracker.notifications import Notifier
from money_tracker.services.storage import (
    ConflictError,
    RemoteStoreInterface,
    StorageError,
)
from money_tracker.validation import (
    CategoryNameConflictError,
    CategoryValidationError,
    CategoryValidator,
)


logger = structlog.get_logger(__name__)


class CategoryManager:
    """Owner of the current user's custom category list."""

    def __init__(
        self,
        remote_store: RemoteStoreInterface,
        notifier: Optional[Notifier] = None,
        validator: Optional[CategoryValidator] = None,
        settings: Optional[SupabaseSettings] = None,
    ):
        self._remote = remote_store
        self._notifier = notifier or Notifier()
        self._validator = validator or CategoryValidator()
        self._table = (settings or get_settings().supabase).categories_table
        self._session: Optional[AuthSession] = None
        self._custom: list[Category] = []

    @property
    def custom_categories(self) -> list[Category]:
        return list(self._custom)

    def all_categories(self) -> list[CategoryStyle]:
        """Defaults first, then custom categories in creation order."""
        return [*DEFAULT_CATEGORIES, *(category.to_style() for category in self._custom)]

    def names(self) -> list[str]:
        return [style.name for style in self.all_categories()]

    def get(self, category_id) -> Optional[Category]:
        return next((c for c in self._custom if str(c.id) == str(category_id)), None)

    def clear(self) -> None:
        self._session = None
        self._custom = []

    async def load(self, session: Optional[AuthSession]) -> bool:
        """Load the user's custom categories (none when signed out)."""
        self._session = session
        if session is None:
            self._custom = []
            return True
        try:
            self._custom = await self._fetch()
        except StorageError as e:
            logger.error("categories_load_failed", user_id=session.user_id, error=str(e))
            await self._notifier.remote_error("loading categories", e)
            return False
        return True

    async def _fetch(self) -> list[Category]:
        records = await self._remote.select(
            self._table,
            filters={"user_id": self._session.user_id},
            order=("created_at", True),
        )
        try:
            return [Category.model_validate(record) for record in records]
        except ValidationError as e:
            raise StorageError(f"Malformed category row in {self._table}") from e

    async def _require_session(self, action: str) -> bool:
        if self._session is None:
            await self._notifier.auth_required(action)
            return False
        return True

    async def _reject(self, error: CategoryValidationError) -> None:
        logger.info("category_rejected", field=error.field, reason=error.message)
        if isinstance(error, CategoryNameConflictError):
            await self._notifier.notify(NotificationBuilder.category_conflict(error.name))
        else:
            await self._notifier.notify(NotificationBuilder.validation_failed(error.field, error.message))

    async def add_category(self, draft: CategoryDraft) -> Optional[Category]:
        if not await self._require_session("create custom categories"):
            return None
        try:
            self._validator.validate_draft(draft, self.names())
        except CategoryValidationError as e:
            await self._reject(e)
            return None

        record = {**draft.model_dump(), "user_id": self._session.user_id}
        try:
            created = Category.model_validate(await self._remote.insert(self._table, record))
            self._custom = await self._fetch()
        except ConflictError:
            await self._notifier.notify(NotificationBuilder.category_conflict(draft.name))
            return None
        except (StorageError, ValidationError) as e:
            logger.error("category_create_failed", name=draft.name, error=str(e))
            await self._notifier.remote_error("creating category", e)
            return None

        logger.info("category_created", name=created.name, category_id=str(created.id))
        await self._notifier.notify(NotificationBuilder.category_created(created.name))
        return created

    async def update_category(self, category_id, patch: CategoryPatch) -> Optional[Category]:
        """
        Returns:
            The updated category, or None on rejection or failure
        """
        if not await self._require_session("update categories"):
            return None
        current = self.get(category_id)
        if current is None:
            await self._notifier.remote_error("updating category", LookupError(f"Unknown category {category_id}"))
            return None
        try:
            self._validator.validate_patch(patch, self.names(), current.name)
        except CategoryValidationError as e:
            await self._reject(e)
            return None

        changes = {**patch.to_patch_dict(), "updated_at": utcnow().isoformat()}
        try:
            updated = Category.model_validate(
                await self._remote.update(self._table, str(current.id), changes)
            )
            self._custom = await self._fetch()
        except ConflictError:
            await self._notifier.notify(NotificationBuilder.category_conflict(patch.name or current.name))
            return None
        except (StorageError, ValidationError) as e:
            logger.error("category_update_failed", category_id=str(category_id), error=str(e))
            await self._notifier.remote_error("updating category", e)
            return None

        await self._notifier.notify(NotificationBuilder.category_updated(updated.name))
        return updated

    async def delete_category(self, category_id) -> Optional[Category]:
        """
        Returns:
            The deleted category (its name is needed to reassign
            transactions), or None on failure
        """
        if not await self._require_session("delete categories"):
            return None
        current = self.get(category_id)
        if current is None:
            await self._notifier.remote_error("deleting category", LookupError(f"Unknown category {category_id}"))
            return None
        try:
            await self._remote.delete(self._table, str(current.id))
            self._custom = await self._fetch()
        except StorageError as e:
            logger.error("category_delete_failed", category_id=str(category_id), error=str(e))
            await self._notifier.remote_error("deleting category", e)
            return None

        await self._notifier.notify(NotificationBuilder.category_deleted(current.name))
        return current
