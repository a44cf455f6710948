"""Audit feed of admin actions."""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func

from registry.infrastructure.database import Base


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    entity = Column(String(50), nullable=False)  # user, certificate, payment, system
    action = Column(String(50), nullable=False)
    data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<Activity {self.entity}.{self.action}>"
