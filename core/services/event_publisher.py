from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Tuple

import structlog

from core.entities.money import Money
from core.entities.transaction import Transaction

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LedgerEvent:
    kind: str   # deposit | withdraw | transfer | purchase | undo | rebuild
    transactions: Tuple[Transaction, ...] = ()
    balances: Dict[int, Money] = field(default_factory=dict)


class LedgerListener(ABC):
    @abstractmethod
    def on_event(self, event: LedgerEvent) -> None: ...


class EventPublisher:
    """Уведомляет подписчиков (например, слой представления) после успешного commit"""

    def __init__(self):
        self._listeners: List[LedgerListener] = []
        self._lock = Lock()

    def subscribe(self, listener: LedgerListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: LedgerListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def publish(self, event: LedgerEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            # операция уже закоммичена, ошибка подписчика её не отменяет
            try:
                listener.on_event(event)
            except Exception:
                logger.exception("ledger_listener_failed", kind=event.kind, listener=type(listener).__name__)
