"""
Seed the global role domain on a database created without migrations:
  python -m app.scripts.bootstrap [--create-tables]
"""
import argparse
import logging
import sys

from app.core.database import SessionLocal, engine
from app.models import Base
from app.services.bootstrap import bootstrap_global_roles

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Seed Discepto's global roles.")
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables first")
    args = parser.parse_args()

    if args.create_tables:
        Base.metadata.create_all(bind=engine)
        logger.info("Created missing tables")

    db = SessionLocal()
    try:
        created = bootstrap_global_roles(db)
    finally:
        db.close()
    if not created:
        logger.info("Global role domain already present; nothing to do")
    return 0


if __name__ == "__main__":
    sys.exit(main())
