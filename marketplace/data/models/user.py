#marketplace/data/models/user.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from marketplace.data.database import Base


class UserModel(Base):
    """Wlasciciel koszyka, kupujacy i sprzedawca; logowanie zyje poza tym serwisem."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
