"""SQLAlchemy mapping metadata for the contractdesk domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from contractdesk.domain.model import (
    Contract,
    ContractType,
    ContractWorkerAssignment,
    Entity,
    Offer,
    OfferDescription,
    OfferStatus,
    User,
    Worker,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


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


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Catalog tables --------------------------------------------------------------

entity_table = Table(
    "entity",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(100), nullable=False, unique=True),
    Column("address", String(200), nullable=False, default=""),
    Column("phone", String(20), nullable=False, default=""),
    Column("email", String(255), nullable=False, default=""),
    Column("bank_account", String(20), nullable=False, default=""),
    Column("kind", String(100), nullable=False, default=""),
    Column("reo_code", String(10), nullable=False, default=""),
    Column("nit_code", String(50), nullable=False, default=""),
    Column("active", Boolean, nullable=False, default=True),
)

contract_type_table = Table(
    "contract_type",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
)

app_user_table = Table(
    "app_user",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("full_name", String(150), nullable=False),
    Column("username", String(100), nullable=False, unique=True),
    Column("role", String(50), nullable=False, default="user"),
    Column("active", Boolean, nullable=False, default=True),
)

worker_table = Table(
    "worker",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("full_name", String(150), nullable=False),
    Column("role_title", String(150), nullable=False),
    Column("national_id", String(11), nullable=False, unique=True),
    Column("phone", String(20), nullable=True),
)

# Contracts and offers --------------------------------------------------------

contract_table = Table(
    "contract",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("entity_id", Integer, ForeignKey("entity.id"), nullable=False),
    Column("contract_type_id", Integer, ForeignKey("contract_type.id"), nullable=False),
    Column("start_date", UTCDateTime(), nullable=False),
    Column("end_date", UTCDateTime(), nullable=False),
    Column("sequence_number", Integer, nullable=False),
    Column("sequence_year", Integer, nullable=False),
    Column("classification", String(100), nullable=False),
    Column("note", Text, nullable=True),
    UniqueConstraint("sequence_year", "sequence_number"),
    Index(None, "entity_id", "contract_type_id"),
    Index(None, "end_date"),
)

offer_table = Table(
    "offer",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("contract_id", Integer, ForeignKey("contract.id"), nullable=False, index=True),
    Column("user_id", Integer, ForeignKey("app_user.id"), nullable=False),
    Column("start_date", UTCDateTime(), nullable=False),
    Column("end_date", UTCDateTime(), nullable=False),
    Column(
        "status",
        Enum(
            OfferStatus,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=True,
    ),
)

offer_description_table = Table(
    "offer_description",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "offer_id",
        Integer,
        ForeignKey("offer.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("text", Text, nullable=False),
)

contract_worker_table = Table(
    "contract_worker",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("contract_id", Integer, ForeignKey("contract.id"), nullable=False),
    Column("worker_id", Integer, ForeignKey("worker.id"), nullable=False, index=True),
    UniqueConstraint("contract_id", "worker_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Entity, entity_table)
    mapper_registry.map_imperatively(ContractType, contract_type_table)
    mapper_registry.map_imperatively(User, app_user_table)

    mapper_registry.map_imperatively(
        Worker,
        worker_table,
        properties={
            "contracts": relationship(
                Contract,
                secondary=contract_worker_table,
                viewonly=True,
                order_by=contract_table.c.start_date.desc(),
            ),
        },
    )

    mapper_registry.map_imperatively(
        Contract,
        contract_table,
        properties={
            "entity": relationship(Entity, viewonly=True),
            "contract_type": relationship(ContractType, viewonly=True),
            "offers": relationship(
                Offer,
                viewonly=True,
                order_by=offer_table.c.id,
            ),
            "workers": relationship(
                Worker,
                secondary=contract_worker_table,
                viewonly=True,
                order_by=worker_table.c.full_name,
            ),
        },
    )

    mapper_registry.map_imperatively(
        Offer,
        offer_table,
        properties={
            "descriptions": relationship(
                OfferDescription,
                cascade="all, delete-orphan",
                order_by=offer_description_table.c.id,
            ),
        },
    )

    mapper_registry.map_imperatively(OfferDescription, offer_description_table)
    mapper_registry.map_imperatively(ContractWorkerAssignment, contract_worker_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for all mapped entities."""

    start_mappers()
    mapper_registry.metadata.create_all(engine)


__all__ = [
    "UTCDateTime",
    "app_user_table",
    "contract_table",
    "contract_type_table",
    "contract_worker_table",
    "create_all_tables",
    "entity_table",
    "mapper_registry",
    "offer_description_table",
    "offer_table",
    "start_mappers",
    "worker_table",
]
