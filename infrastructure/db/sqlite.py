import sqlite3
from datetime import datetime, timezone
from functools import partial
from typing import Optional, List
from pathlib import Path

import structlog

from config.settings import settings
from core.entities.article import Article
from core.entities.money import Money
from core.entities.transaction import Transaction, TransactionType
from core.entities.user import User
from core.errors import CardNumberInUse, StorageFailure, UserNotFound, ArticleNotFound
from core.repositories.article_repository import ArticleRepository
from core.repositories.transaction_repository import TransactionRepository
from core.repositories.unit_of_work import UnitOfWork, UnitOfWorkFactory
from core.repositories.user_repository import UserRepository

logger = structlog.get_logger(__name__)


def format_timestamp(ts: datetime) -> str:
    # фиксированная ширина, чтобы ORDER BY по тексту совпадал с порядком по времени
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f") + "+00:00"


def parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def init_db(db_path: str) -> None:
    if db_path != ":memory:" and not db_path.startswith("file:"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, check_same_thread=False)
    try:
        cur = conn.cursor()
        if db_path != ":memory:":
            cur.execute("PRAGMA journal_mode=WAL;")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            nickname TEXT NOT NULL,
            card_number TEXT UNIQUE,
            balance_cents INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS articles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            price_cents INTEGER NOT NULL CHECK (price_cents >= 0),
            created_at TEXT NOT NULL
        );
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL,
            t_type TEXT NOT NULL,
            money_cents INTEGER NOT NULL,
            counterparty_id INTEGER,
            paired_id INTEGER,
            reverses_id INTEGER,
            quantity INTEGER,
            undone INTEGER NOT NULL DEFAULT 0,
            timestamp TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id),
            FOREIGN KEY(paired_id) REFERENCES transactions(id),
            FOREIGN KEY(reverses_id) REFERENCES transactions(id)
        );
        """)
        cur.execute(
            "CREATE INDEX IF NOT EXISTS idx_transactions_user_ts ON transactions (user_id, timestamp DESC, id DESC);"
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_transactions_paired ON transactions (paired_id);")
        conn.commit()
    finally:
        conn.close()
    logger.info("database_initialized", db_path=db_path)


class SQLiteUserRepository(UserRepository):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            nickname=row["nickname"],
            card_number=row["card_number"],
            balance=Money(int(row["balance_cents"])),
            created_at=parse_timestamp(row["created_at"]),
        )

    def create_user(self, nickname: str, card_number: Optional[str] = None) -> User:
        created_at = datetime.now(timezone.utc)
        cur = self.conn.cursor()
        try:
            cur.execute(
                "INSERT INTO users (nickname, card_number, balance_cents, created_at) VALUES (?, ?, ?, ?)",
                (nickname, card_number, 0, format_timestamp(created_at)),
            )
        except sqlite3.IntegrityError as e:
            raise CardNumberInUse(card_number) from e
        return User(id=cur.lastrowid, nickname=nickname, card_number=card_number,
                    balance=Money.zero(), created_at=parse_timestamp(format_timestamp(created_at)))

    def get_by_id(self, user_id: int) -> Optional[User]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM users WHERE id = ?", (int(user_id),))
        row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def get_for_update(self, user_id: int) -> Optional[User]:
        # у SQLite нет блокировок строк: запись уже сериализована через BEGIN IMMEDIATE
        return self.get_by_id(user_id)

    def get_all(self) -> List[User]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM users ORDER BY id")
        return [self._row_to_user(r) for r in cur.fetchall()]

    def get_by_card_number(self, card_number: str) -> Optional[User]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM users WHERE card_number = ?", (card_number,))
        row = cur.fetchone()
        return self._row_to_user(row) if row else None

    def set_nickname(self, user_id: int, nickname: str) -> None:
        cur = self.conn.cursor()
        cur.execute("UPDATE users SET nickname = ? WHERE id = ?", (nickname, int(user_id)))
        if cur.rowcount == 0:
            raise UserNotFound(user_id)

    def set_card_number(self, user_id: int, card_number: Optional[str]) -> None:
        cur = self.conn.cursor()
        try:
            cur.execute("UPDATE users SET card_number = ? WHERE id = ?", (card_number, int(user_id)))
        except sqlite3.IntegrityError as e:
            raise CardNumberInUse(card_number) from e
        if cur.rowcount == 0:
            raise UserNotFound(user_id)

    def add_balance(self, user_id: int, delta: Money) -> User:
        cur = self.conn.cursor()
        cur.execute(
            "UPDATE users SET balance_cents = balance_cents + ? WHERE id = ?",
            (delta.cents, int(user_id)),
        )
        if cur.rowcount == 0:
            raise UserNotFound(user_id)
        user = self.get_by_id(user_id)
        assert user is not None
        return user

    def set_balance(self, user_id: int, balance: Money) -> User:
        cur = self.conn.cursor()
        cur.execute("UPDATE users SET balance_cents = ? WHERE id = ?", (balance.cents, int(user_id)))
        if cur.rowcount == 0:
            raise UserNotFound(user_id)
        user = self.get_by_id(user_id)
        assert user is not None
        return user


class SQLiteTransactionRepository(TransactionRepository):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def _row_to_tx(self, row: sqlite3.Row) -> Transaction:
        return Transaction(
            id=row["id"],
            user_id=row["user_id"],
            t_type=TransactionType(row["t_type"]),
            money=Money(int(row["money_cents"])),
            timestamp=parse_timestamp(row["timestamp"]),
            counterparty_id=row["counterparty_id"],
            paired_id=row["paired_id"],
            reverses_id=row["reverses_id"],
            quantity=row["quantity"],
            undone=bool(row["undone"]),
        )

    def add(
        self,
        user_id: int,
        t_type: TransactionType,
        money: Money,
        timestamp: datetime,
        counterparty_id: Optional[int] = None,
        paired_id: Optional[int] = None,
        reverses_id: Optional[int] = None,
        quantity: Optional[int] = None,
        undone: bool = False,
    ) -> Transaction:
        stored_ts = format_timestamp(timestamp)
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO transactions (user_id, t_type, money_cents, counterparty_id, paired_id, reverses_id, "
            "quantity, undone, timestamp) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (int(user_id), t_type.value, money.cents, counterparty_id, paired_id, reverses_id,
             quantity, 1 if undone else 0, stored_ts),
        )
        return Transaction(
            id=cur.lastrowid,
            user_id=int(user_id),
            t_type=t_type,
            money=money,
            timestamp=parse_timestamp(stored_ts),
            counterparty_id=counterparty_id,
            paired_id=paired_id,
            reverses_id=reverses_id,
            quantity=quantity,
            undone=undone,
        )

    def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM transactions WHERE id = ?", (int(transaction_id),))
        row = cur.fetchone()
        return self._row_to_tx(row) if row else None

    def get_pair(self, transaction: Transaction) -> Optional[Transaction]:
        if transaction.paired_id is not None:
            return self.get_by_id(transaction.paired_id)
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM transactions WHERE paired_id = ? LIMIT 1", (int(transaction.id),))
        row = cur.fetchone()
        return self._row_to_tx(row) if row else None

    def mark_undone(self, transaction_id: int) -> bool:
        cur = self.conn.cursor()
        cur.execute("UPDATE transactions SET undone = 1 WHERE id = ? AND undone = 0", (int(transaction_id),))
        return cur.rowcount == 1

    def list_for_user(self, user_id: int, limit: int = 10, offset: int = 0) -> List[Transaction]:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT * FROM transactions WHERE user_id = ? ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?",
            (int(user_id), int(limit), int(offset)),
        )
        return [self._row_to_tx(r) for r in cur.fetchall()]

    def sum_active(self, user_id: int) -> Money:
        cur = self.conn.cursor()
        cur.execute(
            "SELECT money_cents FROM transactions WHERE user_id = ? AND undone = 0 ORDER BY id",
            (int(user_id),),
        )
        total = Money.zero()
        for row in cur.fetchall():
            total = total.add(Money(int(row["money_cents"])))
        return total


class SQLiteArticleRepository(ArticleRepository):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def _row_to_article(self, row: sqlite3.Row) -> Article:
        return Article(
            id=row["id"],
            name=row["name"],
            price=Money(int(row["price_cents"])),
            created_at=parse_timestamp(row["created_at"]),
        )

    def create_article(self, name: str, price: Money) -> Article:
        created_at = format_timestamp(datetime.now(timezone.utc))
        cur = self.conn.cursor()
        cur.execute(
            "INSERT INTO articles (name, price_cents, created_at) VALUES (?, ?, ?)",
            (name, price.cents, created_at),
        )
        return Article(id=cur.lastrowid, name=name, price=price, created_at=parse_timestamp(created_at))

    def get_by_id(self, article_id: int) -> Optional[Article]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM articles WHERE id = ?", (int(article_id),))
        row = cur.fetchone()
        return self._row_to_article(row) if row else None

    def get_all(self) -> List[Article]:
        cur = self.conn.cursor()
        cur.execute("SELECT * FROM articles ORDER BY name, id")
        return [self._row_to_article(r) for r in cur.fetchall()]

    def get_price(self, article_id: int) -> Optional[Money]:
        cur = self.conn.cursor()
        cur.execute("SELECT price_cents FROM articles WHERE id = ?", (int(article_id),))
        row = cur.fetchone()
        return Money(int(row["price_cents"])) if row else None

    def set_price(self, article_id: int, price: Money) -> Article:
        cur = self.conn.cursor()
        cur.execute("UPDATE articles SET price_cents = ? WHERE id = ?", (price.cents, int(article_id)))
        if cur.rowcount == 0:
            raise ArticleNotFound(article_id)
        article = self.get_by_id(article_id)
        assert article is not None
        return article


class SQLiteUnitOfWork(UnitOfWork):
    """Одно соединение и одна транзакция SQLite на операцию.

    Пишущие операции начинаются с BEGIN IMMEDIATE: блокировка записи берётся
    до первого чтения, поэтому параллельные операции над одним пользователем
    выполняются строго по очереди. Ожидание блокировки ограничено timeout,
    после чего sqlite3.OperationalError превращается в StorageFailure.
    """

    def __init__(self, db_path: str, timeout: float = 5.0, read_only: bool = False):
        self.db_path = db_path
        self.timeout = timeout
        self.read_only = read_only
        self.conn: Optional[sqlite3.Connection] = None
        self._committed = False

    def __enter__(self) -> "SQLiteUnitOfWork":
        try:
            self.conn = sqlite3.connect(
                self.db_path, timeout=self.timeout, isolation_level=None, check_same_thread=False,
            )
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON")
            self.conn.execute("BEGIN" if self.read_only else "BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            self._close()
            raise StorageFailure(f"Could not start a database transaction: {e}") from e

        self.users = SQLiteUserRepository(self.conn)
        self.transactions = SQLiteTransactionRepository(self.conn)
        self.articles = SQLiteArticleRepository(self.conn)
        self._committed = False
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        rollback_error = None
        try:
            if not self._committed:
                self.rollback()
        except sqlite3.Error as e:
            rollback_error = e
        finally:
            self._close()

        error = exc_val if isinstance(exc_val, sqlite3.Error) else rollback_error
        if error is not None:
            raise StorageFailure(f"Database operation failed: {error}") from error
        return False

    def commit(self) -> None:
        if self.read_only:
            raise RuntimeError("Cannot commit a read-only unit of work")
        self.conn.execute("COMMIT")
        self._committed = True

    def rollback(self) -> None:
        if self.conn is not None and self.conn.in_transaction:
            self.conn.execute("ROLLBACK")

    def _close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None


def build_sqlite_uow_factory(db_path: Optional[str] = None, timeout: Optional[float] = None) -> UnitOfWorkFactory:
    db_path = db_path or settings.DB_PATH
    # каждый UnitOfWork открывает своё соединение, а у :memory: база своя на каждое
    if db_path == ":memory:":
        raise ValueError("In-memory SQLite is not supported: every unit of work opens a new connection")
    return partial(
        SQLiteUnitOfWork,
        db_path,
        timeout=settings.DB_TIMEOUT_SECONDS if timeout is None else timeout,
    )
