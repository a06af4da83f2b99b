import pytest
from fastapi.testclient import TestClient

from calendar_booking.config import Settings
from calendar_booking.database import create_db_engine, create_session_factory, init_db
from calendar_booking.main import create_app
from calendar_booking.models import BOOKING_ACTIVE, Bookings, Timeslots
from calendar_booking.seed import seed_demo_data
from calendar_booking.services import BookingEngine, EventBroadcaster, RowLockRegistry


class RecordingBroadcaster(EventBroadcaster):
    """Keeps every published event, plus the locks held at publish time."""

    def __init__(self, locks: RowLockRegistry | None = None):
        super().__init__()
        self.locks = locks
        self.published = []
        self.locks_held_at_publish = []

    def publish(self, event):
        self.published.append(event)
        if self.locks is not None:
            self.locks_held_at_publish.append(len(self.locks))
        super().publish(event)

    @property
    def names(self):
        return [e.event for e in self.published]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite:///{tmp_path / 'calendar.db'}",
        redis_url=None,
        jwt_secret="test-secret",
        log_level="WARNING",
    )


@pytest.fixture
def db_engine(settings):
    engine = create_db_engine(settings.resolved_database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def seeded_db(db):
    seed_demo_data(db)
    return db


@pytest.fixture
def locks():
    return RowLockRegistry()


@pytest.fixture
def broadcaster(locks):
    return RecordingBroadcaster(locks)


@pytest.fixture
def engine(seeded_db, locks, broadcaster):
    return BookingEngine(seeded_db, locks, broadcaster)


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        session = app.state.session_factory()
        try:
            seed_demo_data(session)
        finally:
            session.close()
        yield c


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/admin/login", json={"username": "admin1", "password": "password1"})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


def assert_booking_invariant(session):
    """is_booked ⇔ exactly one active booking, for every slot."""
    session.expire_all()
    for slot in session.query(Timeslots).all():
        active = (
            session.query(Bookings)
            .filter(Bookings.timeslot_id == slot.timeslot_id, Bookings.booking_status == BOOKING_ACTIVE)
            .count()
        )
        assert active <= 1, slot.timeslot_id
        assert bool(slot.is_booked) == (active == 1), slot.timeslot_id
