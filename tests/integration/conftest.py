from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection

from referral_engine.core.truncation_guard import (
    SchemaState,
    assert_safe_to_truncate,
    truncate_statement,
)
from referral_engine.db.session import engine

PROJECT_ROOT = Path(__file__).resolve().parents[2]

_schema_verified = False


def _alembic_config() -> Config:
    config = Config()
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return config


def _read_schema_state(connection: Connection) -> SchemaState:
    return SchemaState(
        tables=frozenset(inspect(connection).get_table_names()),
        revision=MigrationContext.configure(connection).get_current_revision(),
        head=ScriptDirectory.from_config(_alembic_config()).get_current_head(),
    )


@pytest.fixture(scope="session", autouse=True)
def guard_integration_db_target() -> None:
    assert_safe_to_truncate(str(engine.url))


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    global _schema_verified

    # Dispose pooled connections between tests to avoid cross-event-loop asyncpg reuse.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    if not _schema_verified:
        # env.py drives its own event loop, so it runs off the test loop.
        await asyncio.to_thread(command.upgrade, _alembic_config(), "head")
        async with engine.connect() as conn:
            schema = await conn.run_sync(_read_schema_state)
        assert_safe_to_truncate(str(engine.url), schema=schema)
        _schema_verified = True

    async with engine.begin() as conn:
        await conn.execute(text(truncate_statement()))

    yield

    await engine.dispose()
