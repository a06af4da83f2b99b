import pytest

from calendar_booking.errors import Conflict, InvalidInput, NotFound
from calendar_booking.models import Timeslots
from calendar_booking.services import BookingEngine, SlotStore, UnitOfWork
from conftest import assert_booking_invariant


# ──────────────────────────────────────────────────────────────────────────────
# Reads
# ──────────────────────────────────────────────────────────────────────────────

def test_list_by_date_ordered_by_start(seeded_db):
    slots = SlotStore(seeded_db).list_by_date("2023-10-15")
    assert [s.timeslot_id for s in slots] == ["ts1", "ts2", "ts3", "ts4"]
    assert [s.is_booked for s in slots] == [True, False, True, False]


def test_list_by_date_without_slots_is_empty(seeded_db):
    assert SlotStore(seeded_db).list_by_date("2023-10-17") == []


def test_list_by_date_rejects_bad_date(seeded_db):
    with pytest.raises(InvalidInput):
        SlotStore(seeded_db).list_by_date("2023-10-99")


def test_aggregate_october_2023(seeded_db):
    result = SlotStore(seeded_db).aggregate_by_month(2023, 10)
    assert result == [
        {"slot_date": "2023-10-15", "total_slots": 4, "booked_slots": 2, "available": True},
        {"slot_date": "2023-10-16", "total_slots": 3, "booked_slots": 0, "available": True},
    ]


def test_aggregate_absent_month_is_empty(seeded_db):
    assert SlotStore(seeded_db).aggregate_by_month(2023, 11) == []


def test_aggregate_fully_booked_day_unavailable(seeded_db):
    for slot in seeded_db.query(Timeslots).filter(Timeslots.slot_date == "2023-10-16"):
        slot.is_booked = True
    seeded_db.commit()

    result = {r["slot_date"]: r for r in SlotStore(seeded_db).aggregate_by_month(2023, 10)}
    assert result["2023-10-16"]["booked_slots"] == 3
    assert result["2023-10-16"]["available"] is False


@pytest.mark.parametrize("month", [0, 13])
def test_aggregate_rejects_bad_month(seeded_db, month):
    with pytest.raises(InvalidInput):
        SlotStore(seeded_db).aggregate_by_month(2023, month)


def test_fetch_for_update_holds_lock_until_commit(seeded_db, locks):
    store = SlotStore(seeded_db)
    with UnitOfWork(seeded_db, locks) as uow:
        slot = store.fetch_for_update(uow, "ts2")
        assert slot.slot_date == "2023-10-15"
        assert locks.is_locked("timeslot:ts2")
    assert not locks.is_locked("timeslot:ts2")
    assert len(locks) == 0


def test_fetch_for_update_unknown_is_not_found(seeded_db, locks):
    with pytest.raises(NotFound):
        with UnitOfWork(seeded_db, locks) as uow:
            SlotStore(seeded_db).fetch_for_update(uow, "missing")
    assert len(locks) == 0


# ──────────────────────────────────────────────────────────────────────────────
# Create
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture
def sparse_engine(db, locks, broadcaster):
    """Only ts2 (09:30–10:00) and ts4 (10:30–11:00) on 2023-10-15, both free."""
    db.add_all([
        Timeslots(timeslot_id="ts2", slot_date="2023-10-15", start_time="09:30", end_time="10:00", is_booked=False),
        Timeslots(timeslot_id="ts4", slot_date="2023-10-15", start_time="10:30", end_time="11:00", is_booked=False),
    ])
    db.commit()
    return BookingEngine(db, locks, broadcaster)


def test_create_overlapping_slot_conflicts(sparse_engine, broadcaster):
    with pytest.raises(Conflict):
        sparse_engine.create_slot("2023-10-15", "09:45", "10:15")
    assert broadcaster.published == []


def test_create_adjacent_slot_succeeds(sparse_engine, broadcaster):
    slot = sparse_engine.create_slot("2023-10-15", "10:00", "10:30")
    assert slot.timeslot_id
    assert slot.is_booked is False

    starts = [s.start_time for s in SlotStore(sparse_engine.session).list_by_date("2023-10-15")]
    assert starts == ["09:30", "10:00", "10:30"]
    assert broadcaster.names == ["timeslot_update"]
    assert broadcaster.published[0].data["timeslot_id"] == slot.timeslot_id


def test_create_same_times_on_other_date_succeeds(sparse_engine):
    slot = sparse_engine.create_slot("2023-10-16", "09:30", "10:00")
    assert slot.slot_date == "2023-10-16"


def test_unpadded_date_cannot_sidestep_overlap(engine, seeded_db):
    engine.create_slot("2023-10-05", "09:00", "12:00")
    with pytest.raises(InvalidInput):
        engine.create_slot("2023-10-5", "09:00", "12:00")
    dates = [d["slot_date"] for d in SlotStore(seeded_db).aggregate_by_month(2023, 10)]
    assert dates == ["2023-10-05", "2023-10-15", "2023-10-16"]


def test_overlap_counts_booked_slots(engine):
    # ts1 is booked; a slot overlapping it is still refused
    with pytest.raises(Conflict):
        engine.create_slot("2023-10-15", "08:45", "09:15")


@pytest.mark.parametrize(
    "slot_date, start, end",
    [
        ("2023-10-15", "11:00", "11:00"),
        ("2023-10-15", "12:00", "11:00"),
        ("2023-10-15", "9:00", "11:00"),
        ("15.10.2023", "11:00", "12:00"),
        ("", "11:00", "12:00"),
    ],
)
def test_create_invalid_input(engine, slot_date, start, end):
    with pytest.raises(InvalidInput):
        engine.create_slot(slot_date, start, end)


# ──────────────────────────────────────────────────────────────────────────────
# Update
# ──────────────────────────────────────────────────────────────────────────────

def test_update_single_bound_keeps_other(engine, broadcaster):
    slot = engine.update_slot("ts7", end_time="13:00")
    assert (slot.start_time, slot.end_time) == ("12:00", "13:00")
    assert broadcaster.published[-1].data == {
        "timeslot_id": "ts7",
        "slot_date": "2023-10-16",
        "start_time": "12:00",
        "end_time": "13:00",
        "is_booked": False,
    }


def test_update_excludes_itself_from_overlap(engine):
    slot = engine.update_slot("ts2", start_time="09:35")
    assert (slot.start_time, slot.end_time) == ("09:35", "10:00")


def test_update_into_neighbour_conflicts(engine, seeded_db):
    with pytest.raises(Conflict):
        engine.update_slot("ts2", end_time="10:15")
    seeded_db.expire_all()
    assert seeded_db.get(Timeslots, "ts2").end_time == "10:00"


def test_booked_slot_cannot_move_into_overlap(engine):
    with pytest.raises(Conflict):
        engine.update_slot("ts3", start_time="09:45")


def test_booked_slot_can_move_without_overlap(engine):
    slot = engine.update_slot("ts3", end_time="10:20")
    assert slot.is_booked is True


def test_update_requires_a_field(engine):
    with pytest.raises(InvalidInput):
        engine.update_slot("ts2")


def test_update_inverted_interval_rejected(engine):
    with pytest.raises(InvalidInput):
        engine.update_slot("ts2", start_time="10:30")


def test_update_unknown_slot(engine):
    with pytest.raises(NotFound):
        engine.update_slot("missing", start_time="09:00")


# ──────────────────────────────────────────────────────────────────────────────
# Delete
# ──────────────────────────────────────────────────────────────────────────────

def test_delete_with_active_booking_conflicts(engine, seeded_db):
    with pytest.raises(Conflict):
        engine.delete_slot("ts1")
    assert [s.timeslot_id for s in SlotStore(seeded_db).list_by_date("2023-10-15")][0] == "ts1"


def test_delete_free_slot_hides_it(engine, seeded_db, broadcaster):
    engine.delete_slot("ts7")

    store = SlotStore(seeded_db)
    assert [s.timeslot_id for s in store.list_by_date("2023-10-16")] == ["ts5", "ts6"]
    oct_16 = [r for r in store.aggregate_by_month(2023, 10) if r["slot_date"] == "2023-10-16"][0]
    assert oct_16["total_slots"] == 2
    assert broadcaster.published[-1].data == {"timeslot_id": "ts7", "deleted": True}

    with pytest.raises(NotFound):
        engine.delete_slot("ts7")
    with pytest.raises(NotFound):
        engine.create_booking("ts7", "Jane Doe", "jane@x.com")


def test_deleted_slot_frees_its_interval(engine):
    engine.delete_slot("ts2")
    slot = engine.create_slot("2023-10-15", "09:30", "10:00")
    assert slot.timeslot_id != "ts2"


def test_delete_after_cancel_succeeds(engine, seeded_db):
    with pytest.raises(Conflict):
        engine.delete_slot("ts3")
    engine.cancel_booking("booking2")
    engine.delete_slot("ts3")
    assert "ts3" not in [s.timeslot_id for s in SlotStore(seeded_db).list_by_date("2023-10-15")]
    assert_booking_invariant(seeded_db)
