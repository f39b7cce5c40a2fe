"""
Create the database schema and optionally promote accounts to admin.

Public registration always creates plain users, so the first administrator
is bootstrapped here.

Usage:
  python -m migration.init_db --db sqlite:///./viandas.db
  python -m migration.init_db --db sqlite:///./viandas.db --promote-admin owner@example.com
"""
import argparse
from typing import List, Optional

from sqlalchemy import inspect

from viandas import models
from viandas.config import get_settings
from viandas.db import build_engine, build_session_factory, init_db


def migrate(database_url: str, promote: Optional[List[str]] = None) -> List[str]:
    """Create missing tables and give the admin role to each email in ``promote``.

    Returns the table names present after the run.
    """
    engine = build_engine(database_url)
    try:
        init_db(engine)
        if promote:
            session = build_session_factory(engine)()
            try:
                for email in promote:
                    user = session.query(models.User).filter(models.User.email == email).first()
                    if user is None:
                        raise LookupError(f"no user with email {email}")
                    user.role = models.ROLE_ADMIN
                session.commit()
            finally:
                session.close()
        return sorted(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--db", default=None, help="SQLAlchemy database URL (defaults to VIANDAS_DATABASE_URL)")
    parser.add_argument("--promote-admin", action="append", default=[], metavar="EMAIL")
    args = parser.parse_args()
    tables = migrate(args.db or get_settings().database_url, args.promote_admin)
    print("tables:", ", ".join(tables))


if __name__ == "__main__":
    main()
