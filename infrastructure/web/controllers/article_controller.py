from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.errors import LedgerError
from core.repositories.unit_of_work import UnitOfWorkFactory
from core.use_cases.article_use_cases import create_article, get_article, get_all_articles, set_article_price
from infrastructure.web.dependencies import get_uow_factory
from infrastructure.web.errors import to_http_exception
from infrastructure.web.schemas import ArticleResponse


router = APIRouter(prefix="/articles", tags=["articles"])


class CreateArticleRequest(BaseModel):
    name: str
    price_cents: int

class PriceRequest(BaseModel):
    price_cents: int


@router.post("", response_model=ArticleResponse, status_code=201)
def add_article(payload: CreateArticleRequest, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)):
    try:
        article = create_article(uow_factory, name=payload.name, price_cents=payload.price_cents)
    except LedgerError as e:
        raise to_http_exception(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ArticleResponse.from_article(article)

@router.get("", response_model=List[ArticleResponse])
def list_articles(uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)):
    try:
        articles = get_all_articles(uow_factory)
    except LedgerError as e:
        raise to_http_exception(e)
    return [ArticleResponse.from_article(a) for a in articles]

@router.put("/{article_id}/price", response_model=ArticleResponse)
def change_price(
    article_id: int,
    payload: PriceRequest,
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
):
    try:
        article = set_article_price(uow_factory, article_id, payload.price_cents)
    except LedgerError as e:
        raise to_http_exception(e)
    return ArticleResponse.from_article(article)

@router.get("/{article_id}", response_model=ArticleResponse)
def get_one(article_id: int, uow_factory: UnitOfWorkFactory = Depends(get_uow_factory)):
    try:
        article = get_article(uow_factory, article_id)
    except LedgerError as e:
        raise to_http_exception(e)
    if article is None:
        raise HTTPException(status_code=404, detail="No such article exists!")
    return ArticleResponse.from_article(article)
