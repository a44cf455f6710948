"""Member domain model: maps to the 'users' table."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func

from registry.infrastructure.database import Base

POSITIONS = (
    "PRESIDENT",
    "DEPUTY PRESIDENT",
    "WELFARE",
    "PUBLIC RELATION OFFICER",
    "STATE WELFARE COORDINATOR",
    "MEMBER",
    "TASK FORCE",
    "PROVOST MARSHAL 1",
    "PROVOST MARSHAL 2",
    "VICE PRESIDENT (South West)",
    "VICE PRESIDENT (South East)",
    "VICE PRESIDENT (South South)",
    "VICE PRESIDENT (North West)",
    "VICE PRESIDENT (North Central)",
    "VICE PRESIDENT (North East)",
    "PUBLIC RELATION OFFICE",
    "FINANCIAL SECRETARY",
    "SECRETARY",
    "ASSISTANT SECRETARY",
    "TREASURER",
    "COORDINATOR",
    "ASSISTANT FINANCIAL SECRETARY",
)

DEFAULT_POSITION = "MEMBER"

STATES = (
    "ABIA", "ADAMAWA", "AKWA IBOM", "ANAMBRA", "BAUCHI", "BAYELSA", "BENUE", "BORNO",
    "CROSS RIVER", "DELTA", "EBONYI", "EDO", "EKITI", "ENUGU", "FCT", "GOMBE", "IMO",
    "JIGAWA", "KADUNA", "KANO", "KATSINA", "KEBBI", "KOGI", "KWARA", "LAGOS",
    "NASARAWA", "NIGER", "OGUN", "ONDO", "OSUN", "OYO", "PLATEAU", "RIVERS",
    "SOKOTO", "TARABA", "YOBE", "ZAMFARA",
)

STATE_ALIASES = {
    "ABUJA": "FCT",
    "F.C.T": "FCT",
    "FCT-ABUJA": "FCT",
    "ABJ": "FCT",
    "CROSSRIVER": "CROSS RIVER",
    "AKWAIBOM": "AKWA IBOM",
}


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=True, index=True)
    password_hash = Column(String(255), nullable=False)
    code = Column(String(100), unique=True, nullable=False, index=True)
    position = Column(String(100), nullable=False, default=DEFAULT_POSITION)
    state = Column(String(100), nullable=False, index=True)
    zone = Column(String(100), nullable=False)

    # Stored blob filenames, resolved through the storage backend
    passport_photo = Column(String(255), nullable=True)
    signature = Column(String(255), nullable=True)

    is_active = Column(Boolean, default=True)
    card_generated = Column(Boolean, default=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
    last_verification = Column(DateTime(timezone=True), nullable=True)
    date_added = Column(DateTime(timezone=True), server_default=func.now())
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<User {self.code} - {self.name}>"
