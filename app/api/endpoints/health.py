from enum import Enum
from typing import List

from fastapi import Depends, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.router_decorated import APIRouter
from app.db.session import get_db
from app.schemas.verification import HealthResponse
from app.services.binding_registry import count_bindings

router = APIRouter()
group_tags: List[str | Enum] = ["Health"]


@router.get("/", tags=group_tags, response_model=HealthResponse, status_code=status.HTTP_200_OK)
def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    return HealthResponse(status="ok", service=settings.PROJECT_NAME, verified_holders=count_bindings(db))
