from abc import ABC, abstractmethod
from typing import Optional, List
from core.entities.article import Article
from core.entities.money import Money


class ArticleRepository(ABC):
    @abstractmethod
    def create_article(self, name: str, price: Money) -> Article:...

    @abstractmethod
    def get_by_id(self, article_id: int) -> Optional[Article]:...

    @abstractmethod
    def get_all(self) -> List[Article]:...

    @abstractmethod
    def get_price(self, article_id: int) -> Optional[Money]:...

    @abstractmethod
    def set_price(self, article_id: int, price: Money) -> Article:...
