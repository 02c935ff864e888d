# marketplace/api/routers/health.py
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from marketplace.data.database import get_session_factory

router = APIRouter(tags=["health"])


@router.get("/health")
def health(session_factory: sessionmaker = Depends(get_session_factory)):
    with session_factory() as session:
        session.execute(text("SELECT 1"))
    return {"status": "ok"}
