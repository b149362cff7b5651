"""
Ledgerman Adapters.

Store bundles and event emitters, loaded from LEDGERMAN settings.

Usage:
    from ledgerman.adapters import get_stores, get_event_emitter

    stores = get_stores()
    emitter = get_event_emitter()

Settings:
    LEDGERMAN = {
        "STORE_BACKEND": "ledgerman.adapters.orm.OrmStores",
        "EVENT_EMITTER": "ledgerman.events.SignalEventEmitter",
    }
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from ledgerman.conf import ledgerman_settings
from ledgerman.protocols.events import EventEmitter
from ledgerman.protocols.stores import LedgerStores

logger = logging.getLogger(__name__)


_lock = threading.Lock()
_stores: LedgerStores | None = None
_event_emitter: EventEmitter | None = None


def _load(setting: str):
    path = getattr(ledgerman_settings, setting)
    if not path:
        raise ImproperlyConfigured(f"LEDGERMAN['{setting}'] must be configured.")

    try:
        factory = import_string(path)
    except ImportError as e:
        raise ImproperlyConfigured(f"Failed to import {setting} '{path}': {e}") from e

    instance = factory()
    logger.debug("Loaded %s: %s", setting, path)
    return instance


def get_stores() -> LedgerStores:
    """
    Return the configured store bundle.

    Raises:
        ImproperlyConfigured: If STORE_BACKEND is empty or cannot be imported
    """
    global _stores

    if _stores is None:
        with _lock:
            if _stores is None:  # double-checked
                _stores = _load('STORE_BACKEND')

    return _stores


def get_event_emitter() -> EventEmitter:
    """
    Return the configured event emitter.

    Raises:
        ImproperlyConfigured: If EVENT_EMITTER is empty or cannot be imported
    """
    global _event_emitter

    if _event_emitter is None:
        with _lock:
            if _event_emitter is None:
                _event_emitter = _load('EVENT_EMITTER')

    return _event_emitter


def reset_adapters() -> None:
    """Drop cached instances. Useful for testing and after settings changes."""
    global _stores, _event_emitter
    _stores = None
    _event_emitter = None


__all__ = [
    "get_stores",
    "get_event_emitter",
    "reset_adapters",
]
