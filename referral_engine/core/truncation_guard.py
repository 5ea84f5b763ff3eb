from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import make_url

# Child tables first; TRUNCATE ... CASCADE would also accept any order.
REFERRAL_TABLES = (
    "referral_redemptions",
    "personal_referral_codes",
    "general_referral_codes",
    "users",
)
LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "referral_engine_postgres"})


@dataclass(frozen=True, slots=True)
class SchemaState:
    tables: frozenset[str]
    revision: str | None
    head: str | None


def url_refusals(database_url: str) -> list[str]:
    """Reasons the URL is not a disposable local PostgreSQL test database."""
    parsed = make_url(database_url)
    db_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()

    refusals: list[str] = []
    if parsed.get_backend_name() != "postgresql":
        refusals.append(f"backend '{parsed.get_backend_name()}' is not postgresql")
    if "test" not in db_name.lower():
        refusals.append(f"database '{db_name}' is not named as a test database")
    if host not in LOCAL_HOSTS:
        refusals.append(f"host '{host}' is not a local test host")
    return refusals


def schema_refusals(schema: SchemaState) -> list[str]:
    refusals: list[str] = []
    missing = [table for table in REFERRAL_TABLES if table not in schema.tables]
    if missing:
        refusals.append(f"referral tables missing: {', '.join(missing)}")
    if schema.head is None:
        refusals.append("no alembic head revision found")
    elif schema.revision != schema.head:
        refusals.append(f"schema at revision {schema.revision!r}, expected head {schema.head!r}")
    return refusals


def assert_safe_to_truncate(database_url: str, *, schema: SchemaState | None = None) -> None:
    """Raises unless the URL (and, when given, the migrated schema) allow wiping referral data."""
    refusals = url_refusals(database_url)
    if schema is not None:
        refusals.extend(schema_refusals(schema))
    if refusals:
        raise RuntimeError(
            "Refusing to truncate referral tables: " + "; ".join(refusals) + "."
        )


def truncate_statement() -> str:
    return f"TRUNCATE TABLE {', '.join(REFERRAL_TABLES)} RESTART IDENTITY CASCADE"
