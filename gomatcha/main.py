"""
Module principal de l'application FastAPI GoMatcha.

Configure le logging, le CORS et inclut les routeurs du pipeline
checkout -> paiement -> expédition.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gomatcha import __version__
from gomatcha.checkout.router import checkout_router
from gomatcha.config import settings
from gomatcha.core.logging_config import setup_logging
from gomatcha.database import create_tables
from gomatcha.fulfillment.router import fulfillment_router
from gomatcha.orders.router import order_router
from gomatcha.payments.router import payment_router
from gomatcha.pricing.router import pricing_router

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    logger.info("Tables vérifiées, application prête.")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="API de checkout, paiement et expédition de la boutique SEIJAKU.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Range"],
)

app.include_router(pricing_router, prefix=settings.API_V1_PREFIX)
app.include_router(checkout_router, prefix=settings.API_V1_PREFIX)
app.include_router(payment_router, prefix=settings.API_V1_PREFIX)
app.include_router(fulfillment_router, prefix=settings.API_V1_PREFIX)
app.include_router(order_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def read_root():
    return {"message": f"{settings.APP_NAME} {__version__}"}
