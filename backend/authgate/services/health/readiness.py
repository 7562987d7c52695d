# authgate/services/health/readiness.py
"""Binary readiness: is the schema in a state the code can serve from?"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import MetaData, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

ALEMBIC_VERSION_TABLE = "alembic_version"


@dataclass(frozen=True, slots=True)
class Readiness:
    ready: bool
    reason: str | None = None


def check_readiness(
    engine: Engine, metadata: MetaData, *, migrations_dir: str | None = None
) -> Readiness:
    """
    Ready when every mapped table exists and, if the database carries an
    Alembic version table, its revision is the migration head.

    :param engine: Engine to inspect.
    :param metadata: Metadata listing the tables the code expects.
    :param migrations_dir: Alembic script location; revision check is skipped without it.
    """
    try:
        with engine.connect() as conn:
            present = set(inspect(conn).get_table_names())
            missing = sorted(set(metadata.tables) - present)
            if missing:
                return Readiness(False, f"missing tables: {', '.join(missing)}")
            if migrations_dir is None or ALEMBIC_VERSION_TABLE not in present:
                return Readiness(True)
            current = set(MigrationContext.configure(conn).get_current_heads())
    except SQLAlchemyError as exc:
        logger.warning("Readiness check failed", extra={"event": "readiness.error"}, exc_info=exc)
        return Readiness(False, "database unavailable")

    cfg = Config()
    cfg.set_main_option("script_location", migrations_dir)
    heads = set(ScriptDirectory.from_config(cfg).get_heads())
    if current != heads:
        return Readiness(False, "migrations pending")
    return Readiness(True)
