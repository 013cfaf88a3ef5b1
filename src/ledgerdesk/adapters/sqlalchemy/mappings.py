"""SQLAlchemy mapping metadata for the ledger model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal
from functools import cache

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from ledgerdesk.domain.model import (
    Transaction,
    TransactionSource,
    TransactionStatus,
    TransactionType,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class ExactDecimal(TypeDecorator[Decimal]):
    """Money stored as its decimal string so no backend rounds it."""

    impl = String(40)
    cache_ok = True

    def process_bind_param(self, value: Decimal | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return str(Decimal(value))

    def process_result_value(self, value: str | None, dialect: Dialect) -> Decimal | None:
        _ = dialect
        if value is None:
            return None
        return Decimal(value)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

ledger_transaction_table = Table(
    "ledger_transaction",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_id", Integer, nullable=False),
    Column("user_id", UUIDColumnType, nullable=False),
    Column("amount", ExactDecimal(), nullable=False),
    Column("transaction_date", UTCDateTime(), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("type", Enum(TransactionType, native_enum=False, length=32), nullable=False),
    Column("status", Enum(TransactionStatus, native_enum=False, length=32), nullable=False),
    Column("source", Enum(TransactionSource, native_enum=False, length=32), nullable=False),
    Column("reference_number", String(255), nullable=True),
    Column("external_id", String(255), nullable=True),
    Column("bank_category", String(255), nullable=True),
    Column("notes", Text, nullable=True),
    Column("transfer_id", UUIDColumnType, nullable=True),
    Column("is_reviewed", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index(
        "ix_ledger_transaction_account_date",
        "account_id",
        "transaction_date",
    ),
    Index("ix_ledger_transaction_external_id", "external_id"),
)


@cache
def start_mappers() -> orm.registry:
    log.info("Starting mappers")

    mapper_registry.map_imperatively(
        Transaction,
        ledger_transaction_table,
    )

    configure_mappers()
    return mapper_registry
