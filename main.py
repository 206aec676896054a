from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.logging import configure_logging
from config.settings import settings
from infrastructure.db.sqlite import init_db
from infrastructure.web.controllers.article_controller import router as article_router
from infrastructure.web.controllers.ledger_controller import router as ledger_router
from infrastructure.web.controllers.user_controller import router as user_router

configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(settings.DB_PATH)
    yield

app = FastAPI(title="Tally ledger", lifespan=lifespan)

# от CORS
origins = [
    "http://localhost:3000",
    "http://localhost:8000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(user_router)
app.include_router(ledger_router)
app.include_router(article_router)
