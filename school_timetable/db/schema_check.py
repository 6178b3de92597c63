"""
Create the PostgreSQL schemas and tables this service needs if they are missing.

Run once per environment:
  python -m school_timetable.db.schema_check
"""
import asyncio
import logging
from typing import Dict, List, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

import school_timetable.core.models  # noqa: F401  (registers tables on Base.metadata)
from school_timetable.db.session import Base, engine

logger = logging.getLogger(__name__)


REQUIRED_TABLES: List[Tuple[str, str]] = [
    ("core", "academic_years"),
    ("core", "classes"),
    ("core", "sections"),
    ("core", "teachers"),
    ("school", "subjects"),
    ("school", "class_subjects"),
    ("school", "periods"),
    ("school", "timetables"),
    ("school", "timetable_entries"),
]


CREATE_SCHEMA_SQL: Dict[str, str] = {
    "core": "CREATE SCHEMA IF NOT EXISTS core;",
    "school": "CREATE SCHEMA IF NOT EXISTS school;",
}


async def ensure_tables(db_engine: AsyncEngine) -> List[str]:
    """
    Ensure that all required schemas/tables exist in the connected database.
    Missing tables are created from the ORM models; returns their names.
    """
    async with db_engine.begin() as conn:
        for schema, ddl in CREATE_SCHEMA_SQL.items():
            await conn.execute(text(ddl))

        missing: List[str] = []
        for schema, table in REQUIRED_TABLES:
            full_name = f"{schema}.{table}"
            result = await conn.execute(text("SELECT to_regclass(:relname)"), {"relname": full_name})
            if result.scalar() is None:
                missing.append(full_name)

        if missing:
            await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    return missing


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    missing = await ensure_tables(engine)
    if missing:
        logger.info("Created missing tables: %s", ", ".join(missing))
    else:
        logger.info("All required core/school tables already exist in the database.")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
