"""
Abstract Auth Service Interface

The auth provider issues sessions; the rest of the app only needs to
know who is signed in and to hear about sign-in/sign-out transitions.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Union

from money_tracker.models.session import AuthSession


# Callbacks may be plain functions or coroutines
StateChangeCallback = Callable[[Optional[AuthSession]], Union[None, Awaitable[None]]]


class AuthError(Exception):
    """The auth provider rejected a request; the message is user-presentable."""
    pass


class AuthServiceInterface(ABC):
    """Sign-in, sign-up, sign-out and session access."""

    @abstractmethod
    async def get_session(self) -> Optional[AuthSession]:
        """Current session, refreshed if expired; None when signed out."""
        pass

    @abstractmethod
    def on_state_change(self, callback: StateChangeCallback) -> Callable[[], None]:
        """
        Subscribe to session transitions.

        The callback receives the new session (or None on sign-out).

        Returns:
            A function that removes the subscription
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession:
        """
        Raises:
            AuthError: With the provider's description of the failure
        """
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        """
        Returns:
            The new session, or None when the address must be confirmed first

        Raises:
            AuthError: With the provider's description of the failure
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass
