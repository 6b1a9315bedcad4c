"""
Register a user from the command line. Run from project root:
  python -m app.scripts.create_user NAME EMAIL PASSWORD
The first user ever registered becomes global admin. Example:
  python -m app.scripts.create_user Alice alice@example.com 'Strong1!pass'
"""
import argparse
import logging
import sys

from app.core.database import SessionLocal
from app.core.errors import DisceptoError
from app.services.bootstrap import bootstrap_global_roles
from app.services.users import register_user

logger = logging.getLogger(__name__)


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    parser = argparse.ArgumentParser(description="Register a Discepto user.")
    parser.add_argument("name", help="Display name (1-255 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help="8-64 chars with a letter, a digit and a special character")
    args = parser.parse_args()

    db = SessionLocal()
    try:
        bootstrap_global_roles(db)
        user = register_user(db, args.name, args.email, args.password)
    except DisceptoError as e:
        logger.error("Could not create user: %s", e.message)
        return 1
    finally:
        db.close()
    print(f"Created user '{args.name}' with id {user.id}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
