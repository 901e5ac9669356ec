"""SQLAlchemy ORM models for the transfer ledger"""

import uuid
from sqlalchemy import Column, String, BigInteger, Float, DateTime, ForeignKey, Text, JSON, Uuid
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from remit_ledger.domain.models import SETTING_KEY_MAX_LENGTH
from remit_ledger.utils.date_utils import utcnow

Base = declarative_base()


class User(Base):
    """Staff account that operates the system"""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(Text, nullable=False)
    role = Column(String(16), nullable=False, default="cashier")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Guarantor(Base):
    """Person vouching for one or more clients"""

    __tablename__ = "guarantors"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    national_id = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    clients = relationship("Client", back_populates="guarantor")


class Client(Base):
    """Account holder with a running balance"""

    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(Text, nullable=False, unique=True)
    phone = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    national_id = Column(Text, nullable=True, index=True)
    education_level = Column(Text, nullable=True)
    guarantor_id = Column(Uuid, ForeignKey("guarantors.id", ondelete="SET NULL"), nullable=True)
    # Projection of ledger_entry; only LedgerEntryRepository writes it
    balance_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    guarantor = relationship("Guarantor", back_populates="clients")


class LedgerEntry(Base):
    """Append-only record of a single balance change"""

    __tablename__ = "ledger_entry"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    delta_cents = Column(BigInteger, nullable=False)
    balance_after_cents = Column(BigInteger, nullable=False)
    kind = Column(String(32), nullable=False)  # opening | transaction_debit | transaction_credit | withdraw | adjustment
    reference_id = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Transaction(Base):
    """Credit or debit movement between clients"""

    __tablename__ = "transactions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    type = Column(String(8), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    tax_rate = Column(Float, nullable=False, default=0.0)
    tax_amount_cents = Column(BigInteger, nullable=False, default=0)
    total_amount_cents = Column(BigInteger, nullable=False)
    sender_client_id = Column(Uuid, ForeignKey("clients.id"), nullable=True, index=True)
    receiver_client_id = Column(Uuid, ForeignKey("clients.id"), nullable=True, index=True)
    external_name = Column(Text, nullable=True)
    receipt_number = Column(String(32), nullable=False, unique=True, index=True)
    status = Column(String(16), nullable=False, default="completed")
    notes = Column(Text, nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    sender = relationship("Client", foreign_keys=[sender_client_id])
    receiver = relationship("Client", foreign_keys=[receiver_client_id])


class Withdraw(Base):
    """Cash-out from a client balance"""

    __tablename__ = "withdraws"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid, ForeignKey("clients.id"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    tax_rate = Column(Float, nullable=False, default=0.0)
    tax_amount_cents = Column(BigInteger, nullable=False, default=0)
    total_received_cents = Column(BigInteger, nullable=False, default=0)
    status = Column(String(16), nullable=False, default="completed")
    notes = Column(Text, nullable=True)
    created_by = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    client = relationship("Client")


class TaxLog(Base):
    """Fee revenue generated by one transaction"""

    __tablename__ = "tax_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_client_id = Column(Uuid, ForeignKey("clients.id"), nullable=True)
    receiver_client_id = Column(Uuid, ForeignKey("clients.id"), nullable=True)
    transaction_id = Column(Uuid, ForeignKey("transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    amount_sent_cents = Column(BigInteger, nullable=True)
    amount_received_cents = Column(BigInteger, nullable=True)
    profit_cents = Column(BigInteger, nullable=True)
    method = Column(String(8), nullable=True)  # Send | Receive
    profit_source = Column(String(32), nullable=False, default="Transfer Fee")
    description = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Setting(Base):
    """Key/value configuration row editable at runtime"""

    __tablename__ = "settings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    key = Column(String(SETTING_KEY_MAX_LENGTH), nullable=False, unique=True)
    value = Column(JSON, nullable=True)


class Counter(Base):
    """Named monotonic sequence"""

    __tablename__ = "counters"

    name = Column(String(64), primary_key=True)
    value = Column(BigInteger, nullable=False, default=0)


class AuditLog(Base):
    """Who did what to which record"""

    __tablename__ = "audit_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    action = Column(String(64), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    target_collection = Column(String(32), nullable=False)
    target_id = Column(Uuid, nullable=True)
    ip = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
