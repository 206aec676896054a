from typing import List, Optional

import structlog

from core.entities.article import Article
from core.entities.money import Money
from core.errors import ArticleNotFound, InvalidAmount
from core.repositories.unit_of_work import UnitOfWorkFactory

logger = structlog.get_logger(__name__)


def _price(price_cents) -> Money:
    if isinstance(price_cents, bool) or not isinstance(price_cents, int) or price_cents < 0:
        raise InvalidAmount(price_cents, f"Price must be a non-negative integer number of cents, got {price_cents!r}")
    return Money(price_cents)


def create_article(uow_factory: UnitOfWorkFactory, name: str, price_cents: int) -> Article:
    name = (name or "").strip()
    if not name:
        raise ValueError("Article name must not be empty")
    price = _price(price_cents)
    with uow_factory() as uow:
        article = uow.articles.create_article(name=name, price=price)
        uow.commit()
    logger.info("article_created", article_id=article.id, price=price.cents)
    return article


def get_article(uow_factory: UnitOfWorkFactory, article_id: int) -> Optional[Article]:
    with uow_factory(read_only=True) as uow:
        return uow.articles.get_by_id(article_id)


def get_all_articles(uow_factory: UnitOfWorkFactory) -> List[Article]:
    with uow_factory(read_only=True) as uow:
        return uow.articles.get_all()


def set_article_price(uow_factory: UnitOfWorkFactory, article_id: int, price_cents: int) -> Article:
    price = _price(price_cents)
    with uow_factory() as uow:
        if uow.articles.get_by_id(article_id) is None:
            raise ArticleNotFound(article_id)
        article = uow.articles.set_price(article_id, price)
        uow.commit()
    logger.info("article_price_changed", article_id=article_id, price=price.cents)
    return article
