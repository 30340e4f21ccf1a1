"""Root API router for v1 endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from pipeline_crm.api.v1 import board, health, prospects
from pipeline_crm.core.config import get_config


def get_api_router() -> APIRouter:
    api_router = APIRouter(prefix=get_config().API_PREFIX)
    api_router.include_router(health.router)
    api_router.include_router(prospects.router)
    api_router.include_router(board.router)
    return api_router
