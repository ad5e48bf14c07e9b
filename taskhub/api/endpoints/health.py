from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from taskhub.api.deps import get_database
from taskhub.db.session import Database

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    db: bool


@router.get("/health", response_model=HealthResponse)
async def health(database: Database = Depends(get_database)) -> HealthResponse:
    """Public health check: DB connectivity."""
    result = HealthResponse(db=False)
    try:
        result.db = await database.ping()
    except (SQLAlchemyError, OSError) as e:
        logger.error("Health check DB failure: %s", e)
    return result
