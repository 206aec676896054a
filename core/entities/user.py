from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.entities.money import Money


@dataclass
class User:
    id: int
    nickname: str
    balance: Money          # кэш; меняет только LedgerEngine
    created_at: datetime
    card_number: Optional[str] = None
