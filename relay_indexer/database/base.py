# relay_indexer/database/base.py

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, text
from sqlalchemy.orm import declarative_base, declarative_mixin

from .types import EvmHashType

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@declarative_mixin
class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text('CURRENT_TIMESTAMP')
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text('CURRENT_TIMESTAMP'),
        onupdate=utcnow
    )


@declarative_mixin
class BlockchainTimestampMixin:
    timestamp = Column(Integer, nullable=False, index=True)


class DBBaseModel(Base, TimestampMixin):
    __abstract__ = True

    def __repr__(self) -> str:
        keys = ", ".join(
            f"{col.name}={getattr(self, col.name)!r}" for col in self.__table__.primary_key.columns
        )
        return f"<{self.__class__.__name__}({keys})>"


class DBEventLogModel(DBBaseModel, BlockchainTimestampMixin):
    """Append-only record of a single log, keyed by where it sits in the chain"""
    __abstract__ = True

    tx_hash = Column(EvmHashType(), primary_key=True)
    log_index = Column(Integer, primary_key=True)
    block_number = Column(Integer, nullable=False, index=True)
