"""
Stock listeners: callbacks told that availability needs recomputing.

Any service that commits a change of stock or relations calls
notify_stock_listeners() after the commit. Listeners get a short reason
string such as "stock_changed" or "relations_changed".
"""

import logging
import threading
from typing import Any, Callable, List

from .logging_utils import get_service_logger, log_operation

logger = get_service_logger(__name__)

StockListener = Callable[[str], None]

_listeners: List[StockListener] = []
_listeners_lock = threading.Lock()


def register_stock_listener(callback: StockListener) -> None:
    """
    Register a callable to be told that availability needs recomputing.

    Registering the same callable twice has no effect.
    """
    with _listeners_lock:
        if callback not in _listeners:
            _listeners.append(callback)


def unregister_stock_listener(callback: StockListener) -> None:
    """Remove a previously registered listener; unknown callables are ignored."""
    with _listeners_lock:
        if callback in _listeners:
            _listeners.remove(callback)


def clear_stock_listeners() -> None:
    with _listeners_lock:
        _listeners.clear()


def notify_stock_listeners(reason: str, **context: Any) -> None:
    """Call every registered listener with reason; a failing one is logged and skipped."""
    with _listeners_lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(reason)
        except Exception as e:
            # The change is already committed; one bad listener must not stop the rest
            log_operation(
                logger,
                operation="notify_stock_listeners",
                outcome="listener_failed",
                level=logging.ERROR,
                reason=reason,
                error=str(e),
                **context,
            )
