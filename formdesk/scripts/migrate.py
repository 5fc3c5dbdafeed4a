from __future__ import annotations

import os
import time
import logging
import subprocess
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

from formdesk.core.config import settings

logger = logging.getLogger("formdesk.migrate")


def wait_for_db(engine, timeout_s: int = 60) -> None:
    """Wait until the database is accepting connections."""
    start = time.time()
    delay = 1.0

    while True:
        try:
            with engine.begin() as conn:
                conn.execute(text("SELECT 1"))
            return
        except OperationalError:
            if time.time() - start > timeout_s:
                raise
            logger.info("Database not ready, retrying in %.1fs", delay)
            time.sleep(delay)
            delay = min(delay * 1.5, 5.0)


def run(cmd: list[str]) -> int:
    p = subprocess.run(cmd, check=False)
    return p.returncode


def seed_demo_user() -> None:
    """Create the demo organizer once (idempotent)."""
    from formdesk.db.session import SessionLocal
    from formdesk.db.models.user import User
    from formdesk.core.security import hash_password

    db = SessionLocal()
    try:
        email = settings.DEMO_USER_EMAIL.strip().lower()
        if db.query(User).filter(User.email == email).first() is None:
            db.add(
                User(
                    email=email,
                    display_name=settings.DEMO_USER_DISPLAY_NAME,
                    password_hash=hash_password(settings.DEMO_USER_PASSWORD),
                )
            )
            db.commit()
            logger.info("Demo user %s created", email)
    finally:
        db.close()


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")

    url = os.getenv("DATABASE_URL") or settings.DATABASE_URL
    engine = create_engine(url, future=True, pool_pre_ping=True)

    wait_for_db(engine, timeout_s=int(os.getenv("DB_WAIT_TIMEOUT", "90")))

    tables = set(inspect(engine).get_table_names())
    if "alembic_version" not in tables and "events" in tables:
        # existing schema without alembic tracking
        rc = run(["alembic", "stamp", "head"])
    else:
        rc = run(["alembic", "upgrade", "head"])
    if rc != 0:
        logger.error("alembic exited with %s", rc)
        return rc

    if settings.AUTO_CREATE_DEMO_USER:
        seed_demo_user()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
