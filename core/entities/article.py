from dataclasses import dataclass
from datetime import datetime

from core.entities.money import Money


@dataclass
class Article:
    id: int
    name: str
    price: Money
    created_at: datetime
