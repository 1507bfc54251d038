"""Assistant services package."""

from money_tracker.services.assistant.client import (
    AssistantError,
    FinanceAssistantClient,
)

__all__ = [
    "AssistantError",
    "FinanceAssistantClient",
]
