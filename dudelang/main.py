import logging
import os
import time
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# .env from the working directory; tests configure the environment themselves
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from dudelang.api import billing, health
from dudelang.core.config import settings, validate_config
from dudelang.core.errors import install_error_handlers
from dudelang.core.logging import configure_logging
from dudelang.core.middleware.request_id import RequestIdMiddleware
from dudelang.core.validation import validate_env
from dudelang.features.billing.service import billing_enabled

configure_logging(settings.ENV)
validate_env()
validate_config(strict=settings.CONFIG_STRICT)

logger = logging.getLogger("dudelang")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.started_at = time.time()
    logger.info(
        f"dudelang server up (env={settings.ENV}, billing={'on' if billing_enabled() else 'off'}, "
        f"store={settings.ENTITLEMENTS_FILE})"
    )
    yield
    logger.info("dudelang server stopped")


app = FastAPI(title="dudelang subscription server", lifespan=lifespan)

app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["x-request-id"],
)
install_error_handlers(app, minimal_error_prefix="/api/")

app.include_router(billing.router, prefix="/api")
app.include_router(health.root_router)
