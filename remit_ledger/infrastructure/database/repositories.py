"""Data access layer for ledger entities"""

import logging
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from remit_ledger.infrastructure.database.models import (
    AuditLog,
    Client,
    Counter,
    Guarantor,
    LedgerEntry,
    Setting,
    TaxLog,
    Transaction,
    User,
    Withdraw,
)
from remit_ledger.domain.models import SETTING_DEFAULTS, SideEffectOutcome, TaxLogDraft
from remit_ledger.domain.tax import derive_tax_log
from remit_ledger.infrastructure.observability.metrics import tax_log_failure_counter
from remit_ledger.utils.date_utils import day_bounds, range_bounds


class UserRepository:
    """Repository for staff accounts"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: uuid.UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def create(self, name: str, email: str, password_hash: str, role: str) -> User:
        user = User(name=name, email=email, password_hash=password_hash, role=role)
        self.db.add(user)
        self.db.flush()
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.flush()


class GuarantorRepository:
    """Repository for guarantors"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> Guarantor:
        guarantor = Guarantor(**fields)
        self.db.add(guarantor)
        self.db.flush()
        return guarantor

    def get(self, guarantor_id: uuid.UUID) -> Optional[Guarantor]:
        return self.db.get(Guarantor, guarantor_id)

    def list(self) -> List[Guarantor]:
        return self.db.query(Guarantor).order_by(Guarantor.created_at.desc()).all()


class ClientRepository:
    """Repository for client profiles; balances go through LedgerEntryRepository"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> Client:
        client = Client(balance_cents=0, **fields)
        self.db.add(client)
        self.db.flush()
        return client

    def get(self, client_id: uuid.UUID) -> Optional[Client]:
        return self.db.get(Client, client_id)

    def get_by_name(self, full_name: str) -> Optional[Client]:
        return self.db.query(Client).filter(Client.full_name == full_name).first()

    def list(self) -> List[Client]:
        return self.db.query(Client).order_by(Client.full_name).all()

    def update_profile(self, client: Client, changes: Dict[str, Any]) -> Client:
        for field, value in changes.items():
            setattr(client, field, value)
        self.db.flush()
        return client


class LedgerEntryRepository:
    """
    Owns every write to clients.balance_cents.

    Each change is a single UPDATE evaluated by the database, followed by an
    append-only ledger_entry row in the same transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def apply_delta(
        self,
        client_id: uuid.UUID,
        delta_cents: int,
        kind: str,
        reference_id: Optional[uuid.UUID] = None,
        require_funds: bool = False,
    ) -> Optional[int]:
        """
        Add delta_cents to the client's balance.

        With require_funds the UPDATE only matches while balance >= -delta_cents,
        so two racing debits can never both pass the check.

        Returns:
            Balance after the change, or None when no row matched
            (unknown client, or insufficient funds with require_funds)
        """
        stmt = update(Client).where(Client.id == client_id)
        if require_funds:
            stmt = stmt.where(Client.balance_cents >= -delta_cents)
        stmt = stmt.values(balance_cents=Client.balance_cents + delta_cents).execution_options(
            synchronize_session=False
        )

        result = self.db.execute(stmt)
        if result.rowcount == 0:
            return None

        balance_after = self._current_balance(client_id)
        self._append(client_id, delta_cents, balance_after, kind, reference_id)
        return balance_after

    def set_balance(
        self,
        client_id: uuid.UUID,
        balance_cents: int,
        reference_id: Optional[uuid.UUID] = None,
    ) -> Optional[LedgerEntry]:
        """Overwrite the balance, recording the difference as an adjustment"""
        current = self.db.execute(
            select(Client.balance_cents).where(Client.id == client_id).with_for_update()
        ).scalar_one_or_none()
        if current is None:
            return None

        self.db.execute(
            update(Client)
            .where(Client.id == client_id)
            .values(balance_cents=balance_cents)
            .execution_options(synchronize_session=False)
        )
        return self._append(client_id, balance_cents - current, balance_cents, "adjustment", reference_id)

    def list_for_client(self, client_id: uuid.UUID, limit: int = 1000) -> List[LedgerEntry]:
        return (
            self.db.query(LedgerEntry)
            .filter(LedgerEntry.client_id == client_id)
            .order_by(LedgerEntry.created_at.desc())
            .limit(limit)
            .all()
        )

    def _current_balance(self, client_id: uuid.UUID) -> int:
        return self.db.execute(select(Client.balance_cents).where(Client.id == client_id)).scalar_one()

    def _append(
        self,
        client_id: uuid.UUID,
        delta_cents: int,
        balance_after_cents: int,
        kind: str,
        reference_id: Optional[uuid.UUID],
    ) -> LedgerEntry:
        entry = LedgerEntry(
            client_id=client_id,
            delta_cents=delta_cents,
            balance_after_cents=balance_after_cents,
            kind=kind,
            reference_id=reference_id,
        )
        self.db.add(entry)
        self.db.flush()
        return entry


class SettingRepository:
    """Repository for key/value settings"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[Setting]:
        return self.db.query(Setting).filter(Setting.key == key).first()

    def get_value(self, key: str, default: Any = None) -> Any:
        setting = self.get(key)
        return setting.value if setting is not None else default

    def get_or_create_default(self, key: str) -> Setting:
        """
        Fetch a setting, materialising its default on first read.

        If a concurrent caller inserts the key first, the insert is rolled
        back to its savepoint and the winner's row is returned.
        """
        setting = self.get(key)
        if setting is not None:
            return setting

        try:
            with self.db.begin_nested():
                setting = Setting(key=key, value=SETTING_DEFAULTS.get(key, 0))
                self.db.add(setting)
        except IntegrityError:
            return self.get(key)
        return setting

    def list(self) -> List[Setting]:
        return self.db.query(Setting).order_by(Setting.key).all()

    def upsert(self, key: str, value: Any) -> Setting:
        setting = self.get(key)
        if setting is None:
            try:
                with self.db.begin_nested():
                    setting = Setting(key=key, value=value)
                    self.db.add(setting)
                return setting
            except IntegrityError:
                setting = self.get(key)

        setting.value = value
        self.db.flush()
        return setting


class CounterRepository:
    """Repository for named sequences"""

    def __init__(self, db: Session):
        self.db = db

    def next_value(self, name: str) -> int:
        """
        Increment and return the sequence.

        The increment is one UPDATE evaluated by the database, so concurrent
        callers serialize on the row. The row is created on first use; if
        another caller creates it first the increment is retried.
        """
        result = self.db.execute(
            update(Counter)
            .where(Counter.name == name)
            .values(value=Counter.value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            try:
                with self.db.begin_nested():
                    self.db.add(Counter(name=name, value=1))
                return 1
            except IntegrityError:
                return self.next_value(name)

        return self.db.execute(select(Counter.value).where(Counter.name == name)).scalar_one()


class TransactionRepository:
    """Repository for credit/debit transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> Transaction:
        transaction = Transaction(**fields)
        self.db.add(transaction)
        self.db.flush()
        return transaction

    def get(self, transaction_id: uuid.UUID) -> Optional[Transaction]:
        return self.db.get(Transaction, transaction_id)

    def list(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        type: Optional[str] = None,
        client_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
        limit: int = 1000,
    ) -> List[Transaction]:
        """Fetch transactions matching the filters, newest first"""
        query = self.db.query(Transaction)
        lower, upper = range_bounds(start, end)
        if lower is not None:
            query = query.filter(Transaction.date >= lower)
        if upper is not None:
            query = query.filter(Transaction.date <= upper)
        if type:
            query = query.filter(Transaction.type == type)
        if status:
            query = query.filter(Transaction.status == status)
        if client_id:
            query = query.filter(
                or_(Transaction.sender_client_id == client_id, Transaction.receiver_client_id == client_id)
            )
        return query.order_by(Transaction.date.desc()).limit(limit).all()

    def totals_by_type(self, lower: datetime, upper: datetime) -> List[Dict[str, Any]]:
        """Sum of total_amount and count of completed transactions per type"""
        rows = (
            self.db.query(
                Transaction.type,
                func.coalesce(func.sum(Transaction.total_amount_cents), 0),
                func.count(Transaction.id),
            )
            .filter(
                Transaction.date >= lower,
                Transaction.date <= upper,
                Transaction.status == "completed",
            )
            .group_by(Transaction.type)
            .order_by(Transaction.type)
            .all()
        )
        return [
            {"type": type, "total_amount_cents": int(total), "count": count}
            for type, total, count in rows
        ]

    def daily_totals(self, day: date) -> List[Dict[str, Any]]:
        lower, upper = day_bounds(day)
        return self.totals_by_type(lower, upper)


class WithdrawRepository:
    """Repository for withdrawals"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, **fields: Any) -> Withdraw:
        withdraw = Withdraw(**fields)
        self.db.add(withdraw)
        self.db.flush()
        return withdraw

    def get(self, withdraw_id: uuid.UUID) -> Optional[Withdraw]:
        return self.db.get(Withdraw, withdraw_id)

    def list(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        client_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
        limit: int = 1000,
    ) -> List[Withdraw]:
        """Fetch withdrawals, newest first; search matches notes or client name"""
        query = self.db.query(Withdraw)
        lower, upper = range_bounds(start, end)
        if lower is not None:
            query = query.filter(Withdraw.date >= lower)
        if upper is not None:
            query = query.filter(Withdraw.date <= upper)
        if client_id:
            query = query.filter(Withdraw.client_id == client_id)
        if search:
            pattern = f"%{search}%"
            query = query.join(Client, Withdraw.client_id == Client.id).filter(
                or_(Withdraw.notes.ilike(pattern), Client.full_name.ilike(pattern))
            )
        return query.order_by(Withdraw.date.desc(), Withdraw.created_at.desc()).limit(limit).all()

    def stats(self, start: Optional[date] = None, end: Optional[date] = None) -> Dict[str, int]:
        query = self.db.query(
            func.coalesce(func.sum(Withdraw.amount_cents), 0),
            func.coalesce(func.sum(Withdraw.tax_amount_cents), 0),
            func.coalesce(func.sum(Withdraw.total_received_cents), 0),
            func.count(Withdraw.id),
        )
        lower, upper = range_bounds(start, end)
        if lower is not None:
            query = query.filter(Withdraw.date >= lower)
        if upper is not None:
            query = query.filter(Withdraw.date <= upper)

        total_amount, total_tax, total_received, count = query.one()
        return {
            "total_amount_cents": int(total_amount),
            "total_tax_cents": int(total_tax),
            "total_received_cents": int(total_received),
            "count": count,
        }


class TaxLogRepository:
    """Repository for tax logs"""

    def __init__(self, db: Session):
        self.db = db

    def record_from_transaction(self, transaction: Transaction) -> SideEffectOutcome:
        """
        Write the tax log for a freshly inserted transaction.

        Runs inside a SAVEPOINT: a database failure is logged, counted and
        rolled back without touching the surrounding transaction.
        """
        draft = derive_tax_log(
            type=transaction.type,
            amount_cents=transaction.amount_cents,
            tax_amount_cents=transaction.tax_amount_cents,
            total_amount_cents=transaction.total_amount_cents,
            receipt_number=transaction.receipt_number,
        )
        try:
            with self.db.begin_nested():
                self._insert(transaction, draft)
        except SQLAlchemyError as e:
            tax_log_failure_counter.inc()
            logging.error(
                f"Failed to record tax: {e}",
                extra={"transaction_id": str(transaction.id), "step": "tax_log"},
            )
            return SideEffectOutcome(recorded=False, error=str(e))

        return SideEffectOutcome(recorded=True)

    def _insert(self, transaction: Transaction, draft: TaxLogDraft) -> TaxLog:
        tax_log = TaxLog(
            sender_client_id=transaction.sender_client_id,
            receiver_client_id=transaction.receiver_client_id,
            transaction_id=transaction.id,
            amount_sent_cents=draft.amount_sent_cents,
            amount_received_cents=draft.amount_received_cents,
            profit_cents=draft.profit_cents,
            method=draft.method,
            profit_source=draft.profit_source,
            description=draft.description,
        )
        self.db.add(tax_log)
        self.db.flush()
        return tax_log

    def list(self, limit: int = 1000) -> List[TaxLog]:
        return self.db.query(TaxLog).order_by(TaxLog.date.desc()).limit(limit).all()

    def count_for_transaction(self, transaction_id: uuid.UUID) -> int:
        return self.db.query(TaxLog).filter(TaxLog.transaction_id == transaction_id).count()


class AuditLogRepository:
    """Append-only audit trail"""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        action: str,
        target_collection: str,
        target_id: Optional[uuid.UUID],
        user_id: Optional[uuid.UUID] = None,
        ip: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            action=action,
            user_id=user_id,
            target_collection=target_collection,
            target_id=target_id,
            ip=ip,
            details=details,
        )
        self.db.add(entry)
        self.db.flush()
        return entry


class DashboardRepository:
    """Aggregate figures for the dashboard"""

    def __init__(self, db: Session):
        self.db = db

    def totals(self) -> Dict[str, int]:
        total_clients = self.db.query(func.count(Client.id)).scalar()
        total_guarantors = self.db.query(func.count(Guarantor.id)).scalar()
        total_balance = self.db.query(func.coalesce(func.sum(Client.balance_cents), 0)).scalar()
        total_profit = self.db.query(func.coalesce(func.sum(TaxLog.profit_cents), 0)).scalar()
        return {
            "total_clients": total_clients,
            "total_guarantors": total_guarantors,
            "total_balance_cents": int(total_balance),
            "total_profit_cents": int(total_profit),
        }
