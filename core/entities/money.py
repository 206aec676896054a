from dataclasses import dataclass

from core.errors import AmountOverflow

# границы колонки INTEGER в SQLite
MIN_CENTS = -(2 ** 63)
MAX_CENTS = 2 ** 63 - 1


@dataclass(frozen=True, order=True)
class Money:
    """Денежная сумма в центах, только целочисленная арифметика"""
    cents: int = 0

    def __post_init__(self):
        if isinstance(self.cents, bool) or not isinstance(self.cents, int):
            raise TypeError(f"Money expects an int number of cents, got {type(self.cents).__name__}")
        if not MIN_CENTS <= self.cents <= MAX_CENTS:
            raise AmountOverflow(self.cents)

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    def add(self, other: "Money") -> "Money":
        return Money(self.cents + other.cents)

    def subtract(self, other: "Money") -> "Money":
        return Money(self.cents - other.cents)

    def negate(self) -> "Money":
        return Money(-self.cents)

    def times(self, quantity: int) -> "Money":
        return Money(self.cents * quantity)

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self) -> "Money":
        return self.negate()

    def format(self, symbol: str = "€", separator: str = ",") -> str:
        sign = "-" if self.cents < 0 else ""
        major, minor = divmod(abs(self.cents), 100)
        return f"{sign}{major}{separator}{minor:02d}{symbol}"

    def format_signed_diff(self, symbol: str = "€", separator: str = ",") -> str:
        sign = "-" if self.cents < 0 else "+"
        major, minor = divmod(abs(self.cents), 100)
        return f"{sign}{major}{separator}{minor:02d}{symbol}"

    def __str__(self) -> str:
        return self.format()
