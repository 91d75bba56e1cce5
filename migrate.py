"""
Run database migrations with Alembic.

Usage:
    python migrate.py                 apply pending migrations
    python migrate.py "add column"    autogenerate a revision, then apply it
"""

import sys
import logging
import subprocess

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def migrate(message=None):
    """Autogenerate a revision when a message is given, then upgrade to head"""
    try:
        if message:
            logger.info(f"Generating migration: {message}")
            subprocess.run(
                ["alembic", "revision", "--autogenerate", "-m", message],
                check=True
            )

        logger.info("Applying migrations...")
        subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True
        )

        logger.info("Migration completed successfully!")
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        sys.exit(1)

if __name__ == "__main__":
    migrate(sys.argv[1] if len(sys.argv) > 1 else None)
