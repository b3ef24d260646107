"""
Notification system for tokenledger.

Observers can follow ledger calls by outcome (initialized, applied, rejected)
or by account: an account subscriber hears about every call that touched
that address. Notifications are sent only after the host has committed or
discarded a call's writes, so a subscriber always sees settled state.
"""

import logging
import enum
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List

logger = logging.getLogger(__name__)

Callback = Callable[[Dict[str, Any]], None]


class NotificationType(enum.Enum):
    """Outcomes of a ledger call that observers can subscribe to."""

    LEDGER_INITIALIZED = "ledger_initialized"  # Seed balances and metadata committed
    COMMAND_APPLIED = "command_applied"  # Command writes committed
    COMMAND_REJECTED = "command_rejected"  # Command writes discarded


class NotificationManager:
    """
    Process-wide registry of notification subscribers.

    Use ``get_instance`` rather than the constructor. Callbacks receive one
    dict carrying the call data plus ``event_type`` and ``timestamp``.
    """

    _instance = None

    @classmethod
    def get_instance(cls) -> "NotificationManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the shared manager so the next ``get_instance`` starts empty."""
        cls._instance = None

    def __init__(self):
        if self.__class__._instance is not None:
            raise RuntimeError("NotificationManager is a singleton - use get_instance()")

        self.subscribers: Dict[NotificationType, List[Callback]] = {
            event_type: [] for event_type in NotificationType
        }
        # Mapping of account addresses to interested subscribers
        self.account_subscribers: Dict[str, List[Callback]] = {}
        self.lock = threading.RLock()

    def subscribe(self, event_type: NotificationType, callback: Callback) -> None:
        with self.lock:
            if callback not in self.subscribers[event_type]:
                self.subscribers[event_type].append(callback)
        logger.debug(f"Subscribed to {event_type.value} events")

    def unsubscribe(self, event_type: NotificationType, callback: Callback) -> None:
        with self.lock:
            if callback in self.subscribers[event_type]:
                self.subscribers[event_type].remove(callback)
        logger.debug(f"Unsubscribed from {event_type.value} events")

    def subscribe_account(self, address: str, callback: Callback) -> None:
        """Subscribe to every event whose ``accounts`` include ``address``.

        Args:
            address: Account identifier to follow
            callback: Function to call with the event data
        """
        with self.lock:
            callbacks = self.account_subscribers.setdefault(address, [])
            if callback not in callbacks:
                callbacks.append(callback)
        logger.debug(f"Subscribed to events for account {address}")

    def unsubscribe_account(self, address: str, callback: Callback) -> None:
        with self.lock:
            callbacks = self.account_subscribers.get(address, [])
            if callback in callbacks:
                callbacks.remove(callback)
            if not callbacks:
                self.account_subscribers.pop(address, None)

    def notify(self, event_type: NotificationType, data: Dict[str, Any]) -> None:
        """Deliver an event to its type subscribers and to account subscribers.

        A callback registered for several of the event's accounts is called
        once.

        Args:
            event_type: Outcome being reported
            data: Event data; an optional ``accounts`` list names touched addresses
        """
        data = dict(data)
        data["event_type"] = event_type.value
        data["timestamp"] = datetime.now().isoformat()

        with self.lock:
            targets = list(self.subscribers[event_type])
            for address in data.get("accounts", ()):
                for callback in self.account_subscribers.get(address, ()):
                    if callback not in targets:
                        targets.append(callback)

        self._notify_subscribers(targets, data)
        logger.debug(f"Notified {len(targets)} subscribers of {event_type.value} event")

    def _notify_subscribers(self, callbacks: Iterable[Callback], data: Dict[str, Any]) -> None:
        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Error notifying subscriber: {str(e)}")
