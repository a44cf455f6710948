"""Payment ledger: maps to the 'payments' table."""

from sqlalchemy import Column, Integer, String, Float, DateTime, JSON, Text
from sqlalchemy.sql import func

from registry.infrastructure.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(20), nullable=False, index=True)  # idcard, certificate, database
    amount = Column(Float, nullable=False)
    payment_method = Column(String(30), nullable=False, default="card")
    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, completed, failed

    transaction_id = Column(String(100), unique=True, nullable=False)
    transaction_reference = Column(String(100), nullable=True)
    tx_ref = Column(String(100), nullable=True, index=True)
    amount_paid = Column(Float, nullable=True)
    payment_date = Column(DateTime(timezone=True), server_default=func.now())
    payment_description = Column(Text, nullable=True)
    customer_name = Column(String(200), nullable=True)
    customer_email = Column(String(255), nullable=True)

    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSON, nullable=True)
    processed_by = Column(String(200), nullable=True)

    # Database hosting purchases only
    plan = Column(String(20), nullable=True)
    duration = Column(String(50), nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Payment {self.transaction_id} - {self.type} {self.status}>"
