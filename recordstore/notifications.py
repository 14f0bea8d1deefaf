"""
In-process change notification.

Observers register a callback against an identifier and are called
synchronously, on the thread that made the change, right after a mutation
commits. Delivery follows the identifier hierarchy:

- a change to ``records`` reaches observers of ``records`` and of every
  ``records/<n>``;
- a change to ``records/<n>`` reaches observers of ``records/<n>``, plus
  observers of ``records`` that asked for descendant changes.

Usage:
    notifier = ChangeNotifier()
    handle = notifier.subscribe("records", lambda changed: print(changed))
    ...
    handle.cancel()
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union

from recordstore.domain.identifiers import Collection, Identifier, Item, parse_identifier
from recordstore.utils.logging import get_logger

log = get_logger(__name__)

ChangeCallback = Callable[[Identifier], None]


@dataclass(eq=False)
class Subscription:
    """Handle returned by ``ChangeNotifier.subscribe``."""

    identifier: Identifier
    callback: ChangeCallback
    notify_for_descendants: bool = False
    token: int = 0
    _notifier: Optional["ChangeNotifier"] = field(default=None, repr=False)

    @property
    def active(self) -> bool:
        return self._notifier is not None and self._notifier.is_subscribed(self)

    def cancel(self) -> None:
        """Stop receiving notifications. Safe to call more than once."""
        if self._notifier is not None:
            self._notifier.unsubscribe(self)

    def matches(self, changed: Identifier) -> bool:
        if changed == self.identifier:
            return True
        if isinstance(changed, Collection) and isinstance(self.identifier, Item):
            return True
        return (
            self.notify_for_descendants
            and isinstance(self.identifier, Collection)
            and isinstance(changed, Item)
        )


class ChangeNotifier:
    """Registry of change observers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: Dict[int, Subscription] = {}
        self._tokens = itertools.count(1)

    def subscribe(
        self,
        identifier: Union[str, Identifier],
        callback: ChangeCallback,
        notify_for_descendants: bool = False,
    ) -> Subscription:
        """
        Register ``callback`` for changes at ``identifier``.

        Raises UnsupportedIdentifier when ``identifier`` is malformed.
        """
        parsed = parse_identifier(identifier)
        with self._lock:
            subscription = Subscription(
                identifier=parsed,
                callback=callback,
                notify_for_descendants=notify_for_descendants,
                token=next(self._tokens),
                _notifier=self,
            )
            self._subscriptions[subscription.token] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(subscription.token, None)

    def is_subscribed(self, subscription: Subscription) -> bool:
        with self._lock:
            return self._subscriptions.get(subscription.token) is subscription

    def notify_change(self, identifier: Union[str, Identifier]) -> int:
        """
        Call every observer whose subscription covers ``identifier``.

        Callbacks run in registration order. A callback that raises is logged
        and skipped; the remaining observers are still called.

        Returns
        -------
        int
            Number of observers called.
        """
        changed = parse_identifier(identifier)
        with self._lock:
            targets: List[Subscription] = [
                sub for sub in self._subscriptions.values() if sub.matches(changed)
            ]

        for subscription in targets:
            try:
                subscription.callback(changed)
            except Exception:  # noqa: BLE001 - record observer failures and keep delivering
                log.exception(
                    "Change observer failed",
                    extra={"identifier": str(changed), "subscription": subscription.token},
                )
        log.debug(
            "Change notified",
            extra={"identifier": str(changed), "observers": len(targets)},
        )
        return len(targets)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)


__all__ = ["ChangeCallback", "ChangeNotifier", "Subscription"]
