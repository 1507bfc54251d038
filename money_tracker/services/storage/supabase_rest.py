"""
Supabase (PostgREST) Remote Store Implementation

DESIGN DECISION: The hosted Postgres database is reached over its REST
interface with plain httpx rather than a vendor SDK because:
1. The app only needs a few table operations
2. All HTTP traffic must go through the shared client, whose transport
   is the offline cache manager
3. Error bodies carry the Postgres error code we special-case (23505)

Row-level security on the backend restricts rows to the user whose
access token is sent; the anon key alone sees nothing private.
"""

from typing import Any, Optional

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from money_tracker.config import SupabaseSettings, get_settings
from money_tracker.services.storage.interface import (
    UNIQUE_VIOLATION,
    ConflictError,
    NotFoundError,
    Record,
    RemoteStoreInterface,
    StorageError,
    StoreConnectionError,
)


logger = structlog.get_logger(__name__)

# Only transport-level failures are worth retrying
retry_transient = retry(
    retry=retry_if_exception_type(StoreConnectionError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


class SupabaseRemoteStore(RemoteStoreInterface):
    """
    PostgREST implementation of the remote store.

    Each table is exposed at ``<url>/rest/v1/<table>``; filters are
    ``column=eq.value`` query parameters and writes ask for the stored
    representation back so server-side defaults are visible.
    """

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[SupabaseSettings] = None,
        access_token: Optional[str] = None,
    ):
        self._settings = settings or get_settings().supabase
        self._http = http_client or httpx.AsyncClient()
        self._access_token = access_token

    def set_access_token(self, access_token: Optional[str]) -> None:
        """Switch the identity requests are made as (None = anonymous)."""
        self._access_token = access_token

    def _headers(self) -> dict[str, str]:
        token = self._access_token or self._settings.anon_key
        return {
            "apikey": self._settings.anon_key,
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _table_url(self, table: str) -> str:
        return f"{self._settings.rest_url}/{table}"

    @staticmethod
    def _filter_params(filters: Optional[dict[str, Any]]) -> dict[str, str]:
        return {column: f"eq.{value}" for column, value in (filters or {}).items()}

    @staticmethod
    def _error_from_response(response: httpx.Response) -> StorageError:
        """Translate a PostgREST error body into our exception types."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        code = body.get("code")
        message = body.get("message") or response.text or f"HTTP {response.status_code}"

        if code == UNIQUE_VIOLATION:
            return ConflictError(message, code=code)
        if response.status_code >= 500:
            return StoreConnectionError(message, code=code)
        return StorageError(message, code=code)

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json: Optional[Record | list[Record]] = None,
    ) -> list[Record]:
        try:
            response = await self._http.request(
                method,
                self._table_url(table),
                params=params,
                json=json,
                headers=self._headers(),
            )
        except httpx.TransportError as e:
            raise StoreConnectionError(f"Failed to reach remote store: {e}")

        if response.is_error:
            error = self._error_from_response(response)
            logger.warning(
                "remote_store_error",
                method=method,
                table=table,
                status=response.status_code,
                code=error.code,
            )
            raise error

        if not response.content:
            return []
        data = response.json()
        return data if isinstance(data, list) else [data]

    @retry_transient
    async def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        order: Optional[tuple[str, bool]] = None,
    ) -> list[Record]:
        """Read rows from a table."""
        params = {"select": "*", **self._filter_params(filters)}
        if order:
            column, ascending = order
            params["order"] = f"{column}.{'asc' if ascending else 'desc'}"
        return await self._request("GET", table, params=params)

    @retry_transient
    async def insert(self, table: str, record: Record) -> Record:
        """Insert a row and return it as stored."""
        rows = await self._request("POST", table, json=record)
        if not rows:
            raise StorageError(f"Insert into {table} returned no row")
        return rows[0]

    @retry_transient
    async def insert_many(self, table: str, records: list[Record]) -> list[Record]:
        """
        Insert rows with one POST of a JSON array.

        PostgREST runs a bulk insert as a single statement, so a failing
        row rolls back the whole batch.
        """
        if not records:
            return []
        rows = await self._request("POST", table, json=records)
        if len(rows) != len(records):
            raise StorageError(
                f"Bulk insert into {table} returned {len(rows)} of {len(records)} rows"
            )
        return rows

    @retry_transient
    async def update(self, table: str, record_id: Any, patch: Record) -> Record:
        """Patch the row with this id and return it as stored."""
        rows = await self._request(
            "PATCH",
            table,
            params=self._filter_params({"id": record_id}),
            json=patch,
        )
        if not rows:
            raise NotFoundError(f"Row not found in {table}: {record_id}")
        return rows[0]

    @retry_transient
    async def delete(self, table: str, record_id: Any) -> bool:
        """Delete the row with this id."""
        await self._request(
            "DELETE",
            table,
            params=self._filter_params({"id": record_id}),
        )
        return True
