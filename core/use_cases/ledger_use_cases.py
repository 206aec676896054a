from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import structlog

from core.entities.money import Money
from core.entities.transaction import Transaction, TransactionType
from core.entities.user import User
from core.errors import (
    AlreadyUndone,
    ArticleNotFound,
    InvalidAmount,
    InvalidTransfer,
    LedgerError,
    StorageFailure,
    TransactionNotFound,
    UserNotFound,
)
from core.repositories.unit_of_work import UnitOfWork, UnitOfWorkFactory
from core.services.clock import Clock, SystemClock
from core.services.event_publisher import EventPublisher, LedgerEvent
from core.services.grace_period import GracePeriodPolicy

logger = structlog.get_logger(__name__)


@dataclass
class OperationResult:
    transactions: List[Transaction]
    balances: Dict[int, Money] = field(default_factory=dict)

    @property
    def transaction(self) -> Transaction:
        return self.transactions[0]

    def balance_of(self, user_id: int) -> Money:
        return self.balances[user_id]


@dataclass(frozen=True)
class BalanceCheck:
    user_id: int
    cached: Money
    computed: Money

    @property
    def consistent(self) -> bool:
        return self.cached == self.computed


def _positive_cents(amount) -> Money:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)
    return Money(amount)


def _positive_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidAmount(quantity, f"Quantity must be a positive integer, got {quantity!r}")
    return quantity


class LedgerEngine:
    """Все операции, меняющие баланс пользователя.

    Каждая операция выполняется в одном UnitOfWork: чтение, проверки, запись
    транзакций и обновление кэшированного баланса либо фиксируются вместе,
    либо откатываются вместе. Для каждого пользователя выполняется инвариант:
    balance == сумма money по всем его не отменённым транзакциям.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        clock: Optional[Clock] = None,
        grace_policy: Optional[GracePeriodPolicy] = None,
        publisher: Optional[EventPublisher] = None,
    ):
        self._uow_factory = uow_factory
        self._clock = clock or SystemClock()
        self._grace_policy = grace_policy or GracePeriodPolicy()
        self._publisher = publisher or EventPublisher()

    @property
    def publisher(self) -> EventPublisher:
        return self._publisher

    def deposit(self, user_id: int, amount: int) -> OperationResult:
        money = _positive_cents(amount)
        return self._execute(
            "deposit",
            lambda uow: self._single_entry(uow, user_id, TransactionType.DEPOSIT, money),
            user_id=user_id, amount=amount,
        )

    def withdraw(self, user_id: int, amount: int) -> OperationResult:
        # нижней границы нет: это счёт в баре, а не кошелёк
        money = _positive_cents(amount).negate()
        return self._execute(
            "withdraw",
            lambda uow: self._single_entry(uow, user_id, TransactionType.WITHDRAW, money),
            user_id=user_id, amount=amount,
        )

    def transfer(self, sender_id: int, receiver_id: int, amount: int) -> OperationResult:
        if sender_id == receiver_id:
            raise InvalidTransfer(sender_id)
        money = _positive_cents(amount)

        def work(uow: UnitOfWork) -> OperationResult:
            users = self._lock_users(uow, (sender_id, receiver_id))
            now = self._clock.now()
            sent = uow.transactions.add(
                sender_id, TransactionType.TRANSFER_SENT, money.negate(), now,
                counterparty_id=receiver_id,
            )
            received = uow.transactions.add(
                receiver_id, TransactionType.TRANSFER_RECEIVED, money, now,
                counterparty_id=sender_id, paired_id=sent.id,
            )
            sender = self._apply(uow, users[sender_id], sent.money)
            receiver = self._apply(uow, users[receiver_id], received.money)
            return OperationResult(
                transactions=[sent, received],
                balances={sender.id: sender.balance, receiver.id: receiver.balance},
            )

        return self._execute(
            "transfer", work, sender_id=sender_id, receiver_id=receiver_id, amount=amount,
        )

    def purchase(self, user_id: int, article_id: int, quantity: int = 1) -> OperationResult:
        quantity = _positive_quantity(quantity)

        def work(uow: UnitOfWork) -> OperationResult:
            user = self._lock_users(uow, (user_id,))[user_id]
            price = uow.articles.get_price(article_id)
            if price is None:
                raise ArticleNotFound(article_id)
            money = price.times(quantity).negate()
            tx = uow.transactions.add(
                user_id, TransactionType.PURCHASE, money, self._clock.now(),
                counterparty_id=article_id, quantity=quantity,
            )
            updated = self._apply(uow, user, money)
            return OperationResult(transactions=[tx], balances={updated.id: updated.balance})

        return self._execute(
            "purchase", work, user_id=user_id, article_id=article_id, quantity=quantity,
        )

    def undo(self, user_id: int, transaction_id: int) -> OperationResult:
        """Отменяет транзакцию, дописывая компенсирующую запись.

        Исходная запись помечается undone, компенсирующая несёт -money и тот же
        t_type и сразу пишется с undone=True: обе выпадают из суммы баланса,
        и отменить саму отмену нельзя. Перевод отменяется только целиком,
        обе стороны в одной транзакции хранилища.
        """

        def work(uow: UnitOfWork) -> OperationResult:
            tx = uow.transactions.get_by_id(transaction_id)
            if tx is None or tx.user_id != user_id:
                raise TransactionNotFound(transaction_id, user_id)
            if tx.undone:
                raise AlreadyUndone(tx.id)

            legs = [tx]
            if tx.t_type.is_transfer:
                pair = uow.transactions.get_pair(tx)
                if pair is None:
                    raise TransactionNotFound(tx.paired_id or tx.id)
                legs.append(pair)
                # сначала сторона отправителя
                legs.sort(key=lambda leg: leg.t_type != TransactionType.TRANSFER_SENT)

            users = self._lock_users(uow, [leg.user_id for leg in legs])

            for leg in legs:
                if leg.undone:
                    raise AlreadyUndone(leg.id)

            # проверяем на сервере в момент запроса, а не по тому, что видел клиент
            now = self._clock.now()
            self._grace_policy.check(tx, now, anchor=legs[0].timestamp)

            compensations = []
            for leg in legs:
                if not uow.transactions.mark_undone(leg.id):
                    raise AlreadyUndone(leg.id)
                paired_id = compensations[0].id if leg.t_type == TransactionType.TRANSFER_RECEIVED else None
                compensation = uow.transactions.add(
                    leg.user_id, leg.t_type, leg.money.negate(), now,
                    counterparty_id=leg.counterparty_id,
                    paired_id=paired_id,
                    reverses_id=leg.id,
                    quantity=leg.quantity,
                    undone=True,
                )
                users[leg.user_id] = self._apply(uow, users[leg.user_id], compensation.money)
                compensations.append(compensation)

            for leg in legs:
                leg.undone = True
            return OperationResult(
                transactions=compensations,
                balances={uid: user.balance for uid, user in users.items()},
            )

        return self._execute("undo", work, user_id=user_id, transaction_id=transaction_id)

    def verify_balance(self, user_id: int) -> BalanceCheck:
        with self._uow_factory(read_only=True) as uow:
            user = uow.users.get_by_id(user_id)
            if user is None:
                raise UserNotFound(user_id)
            computed = uow.transactions.sum_active(user_id)
        return BalanceCheck(user_id=user_id, cached=user.balance, computed=computed)

    def rebuild_balance(self, user_id: int) -> Money:
        """Восстанавливает кэш баланса из истории транзакций"""
        def work(uow: UnitOfWork) -> OperationResult:
            user = self._lock_users(uow, (user_id,))[user_id]
            computed = uow.transactions.sum_active(user_id)
            if computed != user.balance:
                logger.warning(
                    "balance_cache_mismatch",
                    user_id=user_id, cached=user.balance.cents, computed=computed.cents,
                )
                user = uow.users.set_balance(user_id, computed)
            return OperationResult(transactions=[], balances={user_id: user.balance})

        result = self._execute("rebuild", work, user_id=user_id)
        return result.balance_of(user_id)

    def _execute(self, kind: str, work: Callable[[UnitOfWork], OperationResult], **context) -> OperationResult:
        log = logger.bind(operation=kind, **context)
        try:
            with self._uow_factory() as uow:
                result = work(uow)
                uow.commit()
        except StorageFailure:
            log.error("ledger_operation_failed", exc_info=True)
            raise
        except LedgerError as e:
            log.warning("ledger_operation_rejected", error=type(e).__name__, reason=str(e))
            raise

        log.info(
            "ledger_operation_committed",
            transaction_ids=[tx.id for tx in result.transactions],
            balances={uid: money.cents for uid, money in result.balances.items()},
        )
        self._publisher.publish(LedgerEvent(
            kind=kind, transactions=tuple(result.transactions), balances=dict(result.balances),
        ))
        return result

    def _single_entry(self, uow: UnitOfWork, user_id: int, t_type: TransactionType, money: Money) -> OperationResult:
        user = self._lock_users(uow, (user_id,))[user_id]
        tx = uow.transactions.add(user_id, t_type, money, self._clock.now())
        updated = self._apply(uow, user, money)
        return OperationResult(transactions=[tx], balances={updated.id: updated.balance})

    @staticmethod
    def _lock_users(uow: UnitOfWork, user_ids: Iterable[int]) -> Dict[int, User]:
        # фиксированный порядок блокировок, чтобы встречные переводы не взаимоблокировались
        users = {}
        for user_id in sorted(set(user_ids)):
            user = uow.users.get_for_update(user_id)
            if user is None:
                raise UserNotFound(user_id)
            users[user_id] = user
        return users

    @staticmethod
    def _apply(uow: UnitOfWork, user: User, delta: Money) -> User:
        # переполнение проверяем до записи
        user.balance.add(delta)
        return uow.users.add_balance(user.id, delta)
