import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from referral_api.core.config import settings
from referral_api.core.exceptions import register_exception_handlers
from referral_api.database import close_db, init_db
from referral_api.routers import user_routes

load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s", settings.APP_NAME)
    # a failing schema sync aborts startup and uvicorn exits nonzero
    init_db()

    yield

    logger.info("Shutting down %s", settings.APP_NAME)
    close_db()


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=settings.ALLOW_METHODS,
    allow_headers=settings.ALLOW_HEADERS,
)

register_exception_handlers(app)


@app.get("/", response_class=PlainTextResponse)
def read_root():
    return "Welcome to the Referral System!"


@app.get("/health")
def health_check():
    return {"status": "healthy"}


# Routers
app.include_router(user_routes.router)
