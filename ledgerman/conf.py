"""
Ledgerman configuration.

Usage in settings.py:
    LEDGERMAN = {
        "STORE_BACKEND": "ledgerman.adapters.orm.OrmStores",
        "EVENT_EMITTER": "ledgerman.events.SignalEventEmitter",
        "DATABASE_ALIAS": "default",
        "DEFAULT_BASE_UNIT": "unit",
        "CLAIM_REFERENCES": False,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class LedgermanSettings:
    """Ledgerman configuration settings."""

    # Store bundle factory (dotted path)
    STORE_BACKEND: str = "ledgerman.adapters.orm.OrmStores"

    # Event emitter (dotted path)
    EVENT_EMITTER: str = "ledgerman.events.SignalEventEmitter"

    # Database alias used by the ORM stores
    DATABASE_ALIAS: str = "default"

    # Base unit recorded when an item or ingredient does not name one
    DEFAULT_BASE_UNIT: str = "unit"

    # Insert a unique claim row per reference before processing
    CLAIM_REFERENCES: bool = False


def get_ledgerman_settings() -> LedgermanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "LEDGERMAN", {})
    return LedgermanSettings(**{
        k: v for k, v in user_settings.items()
        if k in LedgermanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_ledgerman_settings(), name)


ledgerman_settings = _LazySettings()
