"""Load the October 2023 demo calendar into DATABASE_URL."""

from dotenv import load_dotenv

from calendar_booking.config import get_settings
from calendar_booking.database import create_db_engine, create_session_factory, init_db
from calendar_booking.seed import seed_demo_data

load_dotenv()


def main():
    settings = get_settings()
    print(f"Using DB: {settings.resolved_database_url}")

    engine = create_db_engine(settings.resolved_database_url)
    init_db(engine)

    db = create_session_factory(engine)()
    try:
        seed_demo_data(db)
    finally:
        db.close()
        engine.dispose()

    print("Demo data loaded.")


if __name__ == "__main__":
    main()
