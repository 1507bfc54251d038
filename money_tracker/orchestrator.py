"""
Application Coordinator for Money Tracker

Owns the application state the UI reads (auth session, transactions,
categories, assistant conversation) and wires the collaborators:

1. Auth state changes → reconciliation engine + category manager
2. Category delete/rename → transactions moved to the surviving name
3. Assistant questions → inference functions, with bounded chat history

DESIGN DECISION: There is no ambient global state. Every piece of
state lives in exactly one object reachable from MoneyTrackerApp, and
every mutation goes through one of its methods.

All HTTP traffic shares one httpx client whose transport is the offline
cache manager, so the cache sees every fetch the app makes.
"""

from typing import Callable, Optional
from uuid import UUID

import httpx
import structlog

from money_tracker.categories import CategoryManager
from money_tracker.config import AssistantSettings, Settings, get_settings
from money_tracker.models.notification import NotificationBuilder
from money_tracker.models.session import AuthSession, ChatMessage
from money_tracker.models.transaction import (
    Category,
    CategoryDraft,
    CategoryPatch,
    CategoryStyle,
    Totals,
    Transaction,
    TransactionDraft,
    TransactionPatch,
)
from money_tracker.notifications import NotificationSink, Notifier, configure_logging
from money_tracker.offline import CachingTransport, OfflineCacheManager
from money_tracker.services.assistant import AssistantError, FinanceAssistantClient
from money_tracker.services.auth import AuthError, AuthServiceInterface, SupabaseAuthService
from money_tracker.services.storage import (
    LocalKeyValueStore,
    LocalTransactionStore,
    RemoteStoreInterface,
    SupabaseRemoteStore,
)
from money_tracker.sync import ReconciliationEngine, SessionState, SyncReport


logger = structlog.get_logger(__name__)


class MoneyTrackerApp:
    """
    Single owner of application state.

    Usage:
        app = create_app_components()
        await app.start()
        await app.add_transaction(TransactionDraft(amount=50000, category="food"))
        totals = app.totals()
    """

    def __init__(
        self,
        auth: AuthServiceInterface,
        engine: ReconciliationEngine,
        categories: CategoryManager,
        assistant: FinanceAssistantClient,
        notifier: Notifier,
        remote_store: Optional[RemoteStoreInterface] = None,
        cache: Optional[OfflineCacheManager] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        assistant_settings: Optional[AssistantSettings] = None,
    ):
        self._auth = auth
        self._engine = engine
        self._categories = categories
        self._assistant = assistant
        self._notifier = notifier
        self._remote_store = remote_store
        self._cache = cache
        self._http = http_client
        self._max_history = (assistant_settings or get_settings().assistant).max_history

        self._session: Optional[AuthSession] = None
        self._chat_history: list[ChatMessage] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # State the UI reads
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[AuthSession]:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._engine.state

    @property
    def engine(self) -> ReconciliationEngine:
        return self._engine

    @property
    def transactions(self) -> list[Transaction]:
        return self._engine.transactions

    @property
    def chat_history(self) -> list[ChatMessage]:
        return list(self._chat_history)

    def categories(self) -> list[CategoryStyle]:
        return self._categories.all_categories()

    def custom_categories(self) -> list[Category]:
        return self._categories.custom_categories

    def totals(self) -> Totals:
        return self._engine.compute_totals()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SessionState:
        """
        Prepare the offline cache, load the anonymous list and resume a
        persisted session if there is one.
        """
        if self._cache is not None:
            await self._cache.on_install()
            await self._cache.on_activate()

        if self._unsubscribe is None:
            self._unsubscribe = self._auth.on_state_change(self._on_auth_state_changed)

        await self._engine.start()
        session = await self._auth.get_session()
        # A refreshed session has already been delivered through the callback
        if session is not None and self._session is None:
            await self._on_auth_state_changed(session)

        logger.info("app_started", state=self._engine.state.value)
        return self._engine.state

    async def _on_auth_state_changed(self, session: Optional[AuthSession]) -> None:
        self._session = session
        if self._remote_store is not None:
            self._remote_store.set_access_token(session.access_token if session else None)

        if session is None:
            self._engine.reset()
            self._categories.clear()
            self._chat_history = []
            return

        await self._engine.on_session_changed(session)
        await self._categories.load(session)

    async def aclose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._http is not None:
            await self._http.aclose()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> bool:
        try:
            session = await self._auth.sign_in(email, password)
        except AuthError as e:
            await self._notifier.notify(NotificationBuilder.auth_failed("Sign in", str(e)))
            return False
        await self._notifier.notify(NotificationBuilder.signed_in(session.email or email))
        return True

    async def sign_up(self, email: str, password: str) -> bool:
        try:
            await self._auth.sign_up(email, password)
        except AuthError as e:
            await self._notifier.notify(NotificationBuilder.auth_failed("Sign up", str(e)))
            return False
        await self._notifier.notify(NotificationBuilder.signed_up(email))
        return True

    async def sign_out(self) -> bool:
        """
        Sign out and clear in-memory transactions and categories.

        The anonymous list is NOT reloaded; call ``load_local()`` for that.
        """
        try:
            await self._auth.sign_out()
        except OSError as e:
            await self._notifier.notify(NotificationBuilder.local_storage_error("signing out", str(e)))
            await self._on_auth_state_changed(None)
            return False
        await self._notifier.notify(NotificationBuilder.signed_out())
        return True

    def load_local(self) -> list[Transaction]:
        return self._engine.load_local()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def add_transaction(self, draft: TransactionDraft) -> Optional[Transaction]:
        return await self._engine.add(draft)

    async def update_transaction(self, transaction_id: UUID, patch: TransactionPatch) -> bool:
        return await self._engine.update(transaction_id, patch)

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        return await self._engine.delete(transaction_id)

    async def sync_local(self) -> Optional[SyncReport]:
        return await self._engine.sync_local()

    async def skip_sync(self) -> bool:
        return await self._engine.skip_sync()

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def add_category(self, draft: CategoryDraft) -> Optional[Category]:
        return await self._categories.add_category(draft)

    async def update_category(self, category_id, patch: CategoryPatch) -> Optional[Category]:
        previous = self._categories.get(category_id)
        updated = await self._categories.update_category(category_id, patch)
        if updated is not None and previous is not None and previous.name != updated.name:
            await self._engine.reassign_category(previous.name, updated.name)
        return updated

    async def delete_category(self, category_id) -> bool:
        deleted = await self._categories.delete_category(category_id)
        if deleted is None:
            return False
        await self._engine.reassign_category(deleted.name)
        return True

    # ------------------------------------------------------------------
    # Assistant
    # ------------------------------------------------------------------

    def _remember(self, *messages: ChatMessage) -> None:
        self._chat_history.extend(messages)
        if self._max_history:
            self._chat_history = self._chat_history[-self._max_history:]
        else:
            self._chat_history = []

    async def ask_assistant(self, question: str) -> Optional[str]:
        if self._session is None:
            await self._notifier.auth_required("use the AI assistant")
            return None
        try:
            answer = await self._assistant.ask(question, self._session, self._chat_history)
        except AssistantError as e:
            await self._notifier.notify(NotificationBuilder.assistant_error(str(e)))
            return None

        self._remember(
            ChatMessage(role="user", content=question.strip()),
            ChatMessage(role="assistant", content=answer),
        )
        return answer

    async def transcribe(self, audio: bytes) -> Optional[str]:
        if self._session is None:
            await self._notifier.auth_required("use voice input")
            return None
        try:
            return await self._assistant.transcribe(audio, self._session)
        except AssistantError as e:
            await self._notifier.notify(NotificationBuilder.assistant_error(str(e)))
            return None

    def clear_chat(self) -> None:
        self._chat_history = []


def create_app_components(
    settings: Optional[Settings] = None,
    network: Optional[httpx.AsyncBaseTransport] = None,
    sink: Optional[NotificationSink] = None,
) -> MoneyTrackerApp:
    """
    Factory function to create all application components.

    Args:
        settings: Root settings (defaults to get_settings())
        network: Transport the offline cache fetches through.
                 Defaults to a real httpx.AsyncHTTPTransport.
        sink: Where user notifications are delivered

    Returns:
        A coordinator ready for ``await app.start()``
    """
    settings = settings or get_settings()
    app_settings = settings.app
    supabase_settings = settings.supabase
    local_settings = settings.local_store
    assistant_settings = settings.assistant

    configure_logging(app_settings.log_level)

    transport = CachingTransport.create(network=network, settings=settings.offline_cache)
    http_client = httpx.AsyncClient(transport=transport)

    kv_store = LocalKeyValueStore(local_settings.path)
    remote_store = SupabaseRemoteStore(http_client, supabase_settings)
    notifier = Notifier(sink)

    return MoneyTrackerApp(
        auth=SupabaseAuthService(http_client, kv_store, supabase_settings, local_settings),
        engine=ReconciliationEngine(
            LocalTransactionStore(kv_store, local_settings),
            remote_store,
            notifier,
            supabase_settings=supabase_settings,
            app_settings=app_settings,
        ),
        categories=CategoryManager(remote_store, notifier, settings=supabase_settings),
        assistant=FinanceAssistantClient(http_client, assistant_settings, supabase_settings),
        notifier=notifier,
        remote_store=remote_store,
        cache=transport.manager,
        http_client=http_client,
        assistant_settings=assistant_settings,
    )
