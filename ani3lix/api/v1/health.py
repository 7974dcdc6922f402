"""Liveness route; reports whether the user store is reachable."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ani3lix.core.config import settings
from ani3lix.core.database import check_db_connected, get_db
from ani3lix.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """Service status plus user store connectivity, for load balancers."""
    return HealthResponse(
        service=settings.JWT_ISSUER,
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
    )
