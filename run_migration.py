"""
SQL migration runner
Usage:
    python run_migration.py <migration_file.sql>   run one file
    python run_migration.py                         run every migrations/*.sql in order
"""
import sys
import logging
from pathlib import Path

from sqlalchemy import text

from cascade_api.database import get_engine

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def split_statements(sql: str) -> list[str]:
    """Split a migration file into statements, dropping `--` comment lines"""
    lines = [line for line in sql.splitlines() if not line.strip().startswith('--')]
    return [s.strip() for s in "\n".join(lines).split(';') if s.strip()]


def run_migration(migration_file_path: str):
    """Run a SQL migration file"""
    migration_file = Path(migration_file_path)

    if not migration_file.exists():
        logger.error(f"Migration file not found: {migration_file}")
        sys.exit(1)

    logger.info(f"Reading migration file: {migration_file}")
    statements = split_statements(migration_file.read_text())

    logger.info(f"Found {len(statements)} SQL statements to execute")

    with get_engine().connect() as conn:
        for i, stmt in enumerate(statements, 1):
            logger.info(f"Executing statement {i}/{len(statements)}...")
            conn.execute(text(stmt))
        conn.commit()

    logger.info(f"✅ Migration {migration_file.name} completed successfully!")


if __name__ == "__main__":
    files = sys.argv[1:] or [str(p) for p in sorted(MIGRATIONS_DIR.glob("*.sql"))]

    try:
        for path in files:
            run_migration(path)
    except Exception as e:
        logger.error(f"❌ Migration failed: {e}")
        sys.exit(1)
