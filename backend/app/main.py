from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1.router import api_router
from app.core.config import settings
from app.services.chat_service import chat_service
from app.services.record_store import record_store

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    try:
        await record_store.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize RecordStore — continuing without DB")
    try:
        await chat_service.initialize(settings)
    except Exception:
        logger.exception("Failed to initialize ChatService — continuing without chat")
    yield
    await record_store.close()
    await chat_service.close()


app = FastAPI(
    title="Echelon HRIS API",
    description="Employee directory, org chart, relevance search and HR assistant",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Echelon HRIS API"}
