import os
import sys

from dotenv import load_dotenv

from calendar_booking.auth import create_admin
from calendar_booking.config import get_settings
from calendar_booking.database import create_db_engine, create_session_factory, init_db


# ======================================================
# ENV
# ======================================================

load_dotenv()

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")


# ======================================================
# MAIN LOGIC
# ======================================================

def main() -> int:
    if not ADMIN_USERNAME or not ADMIN_PASSWORD:
        print("ADMIN_USERNAME and ADMIN_PASSWORD must be set", file=sys.stderr)
        return 1

    settings = get_settings()
    engine = create_db_engine(settings.resolved_database_url)
    init_db(engine)
    session_factory = create_session_factory(engine)

    db = session_factory()
    try:
        admin = create_admin(db, ADMIN_USERNAME, ADMIN_PASSWORD)
        print(f"[BOOTSTRAP] Admin ready: {admin.username} (admin_id={admin.admin_id})")
    finally:
        db.close()
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
