"""Key-value persistence on a SQLAlchemy engine with explicit lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, insert, select, update

from idsync.adapters.sqlalchemy.mappings import create_all_tables, key_value_table
from idsync.config.storage import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy store is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the SQLAlchemy engine and create the storage tables."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )
    if _STATE.engine is not None:
        _STATE.engine.dispose()

    resolved_engine = engine or create_engine(database_uri or get_database_config().uri)
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    return resolved_engine


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class SqlAlchemyKeyValueStore:
    """``KeyValueStore`` backed by a single table.

    Statements run synchronously on the configured engine; each call is its own
    transaction.
    """

    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        engine = self._engine or _STATE.engine
        if engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call idsync.adapters.sqlalchemy."
                "store.startup() before using the key-value store."
            )
        return engine

    async def get_item(self, key: str) -> str | None:
        with self.engine.connect() as connection:
            return connection.execute(
                select(key_value_table.c.value).where(key_value_table.c.key == key)
            ).scalar_one_or_none()

    async def set_item(self, key: str, value: str) -> None:
        now = datetime.now(UTC)
        with self.engine.begin() as connection:
            result = connection.execute(
                update(key_value_table)
                .where(key_value_table.c.key == key)
                .values(value=value, updated_at=now)
            )
            if result.rowcount == 0:
                connection.execute(
                    insert(key_value_table).values(key=key, value=value, updated_at=now)
                )

    async def remove_item(self, key: str) -> None:
        with self.engine.begin() as connection:
            connection.execute(delete(key_value_table).where(key_value_table.c.key == key))
