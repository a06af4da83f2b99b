from sqlalchemy import Boolean, Column, ForeignKey, Index, Text, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

BOOKING_ACTIVE = "active"
BOOKING_CANCELED = "canceled"


class AdminUsers(Base):
    __tablename__ = 'admin_users'

    admin_id = Column(Text, primary_key=True)
    username = Column(Text, nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)


class Timeslots(Base):
    __tablename__ = 'timeslots'
    __table_args__ = (
        Index('ix_timeslots_slot_date_start', 'slot_date', 'start_time'),
    )

    timeslot_id = Column(Text, primary_key=True)
    slot_date = Column(Text, nullable=False)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    is_booked = Column(Boolean, nullable=False, server_default=text('false'), default=False)
    # soft delete: bookings history keeps pointing at the row
    deleted_at = Column(Text)

    bookings = relationship('Bookings', back_populates='timeslot')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        Index(
            'uq_bookings_active_timeslot',
            'timeslot_id',
            unique=True,
            postgresql_where=text("booking_status = 'active'"),
            sqlite_where=text("booking_status = 'active'"),
        ),
        Index('ix_bookings_created_at', 'created_at'),
    )

    booking_id = Column(Text, primary_key=True)
    timeslot_id = Column(ForeignKey('timeslots.timeslot_id'), nullable=False)
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text)
    appointment_notes = Column(Text)
    booking_status = Column(Text, nullable=False, server_default=text("'active'"), default=BOOKING_ACTIVE)
    created_at = Column(Text, nullable=False)

    timeslot = relationship('Timeslots', back_populates='bookings')
