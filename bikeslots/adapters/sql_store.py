"""
SQLAlchemy-backed store for services, bikes and bookings.

Exclusivity is enforced by the database: every active booking owns one row
per occupied slot in ``booking_slots``, whose primary key is
``(date, time_slot)``. Two overlapping admissions cannot both commit, even
from different processes; the loser's ``IntegrityError`` surfaces as
``SlotUnavailable``. Cancelling a booking deletes its slot rows in the same
transaction as the status write.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from typing import Iterable, Iterator, List, Optional, Sequence

import pendulum
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    event,
    func,
    select,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..domain.exceptions import BookingNotFound, DuplicateNumberPlate, RepositoryError, SlotUnavailable
from ..domain.models import Bike, Booking, BookingStatus, ServiceInfo, ServiceType, TimeSlot
from .memory_store import load_service_catalog


logger = logging.getLogger(__name__)

Base = declarative_base()

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in BookingStatus)


class ServiceRow(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    name = Column(String(120), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Integer, nullable=False, default=0)
    duration_minutes = Column(Integer, nullable=False)
    category = Column(String(40), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
        CheckConstraint("price >= 0", name="ck_services_price_non_negative"),
    )


class BikeRow(Base):
    __tablename__ = "bikes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    brand = Column(String(80), nullable=False)
    model = Column(String(80), nullable=False)
    number_plate = Column(String(20), nullable=False, unique=True)


class BookingRow(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=True, index=True)
    bike_id = Column(Integer, ForeignKey("bikes.id"), nullable=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    date = Column(Date, nullable=False)
    time_slot = Column(String(5), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    service_type = Column(String(10), nullable=False, default=ServiceType.VISIT.value)
    address = Column(Text, nullable=True)
    total_amount = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_bookings_status"),
        CheckConstraint("duration_minutes > 0", name="ck_bookings_duration_positive"),
        Index("ix_bookings_date_status", "date", "status"),
    )


class BookingSlotRow(Base):
    """One claimed slot of an active booking's footprint."""
    __tablename__ = "booking_slots"

    date = Column(Date, primary_key=True)
    time_slot = Column(String(5), primary_key=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)


def create_sql_engine(url: str, echo: bool = False) -> Engine:
    """
    Create the process-wide engine.

    SQLite connections are shared across threads and enforce foreign keys.
    """
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}

    engine = create_engine(url, echo=echo, connect_args=connect_args)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


class SqlStore:
    """
    Implementation of the catalog, bike and booking protocols on SQLAlchemy.

    The store does not own the engine; whoever created it disposes it.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        """Transaction scope translating driver failures into RepositoryError."""
        try:
            with self._session_factory.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Storage failure during %s", operation)
            raise RepositoryError(f"Storage failure during {operation}") from exc

    def create_schema(self, services: Optional[Iterable[ServiceInfo]] = None) -> None:
        """Create tables and seed the catalog if it is empty."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            logger.exception("Could not create schema")
            raise RepositoryError("Could not create schema") from exc

        with self._session("catalog seeding") as session:
            if session.scalar(select(func.count()).select_from(ServiceRow)):
                return

            catalog = load_service_catalog() if services is None else list(services)
            session.add_all(self._service_row(s) for s in catalog)
            logger.info("Seeded %d services", len(catalog))

    # Services

    def get_service(self, service_id: int) -> Optional[ServiceInfo]:
        with self._session("service lookup") as session:
            row = session.get(ServiceRow, service_id)
            return self._to_service(row) if row else None

    def list_services(self, *, category: Optional[str] = None) -> List[ServiceInfo]:
        query = select(ServiceRow).where(ServiceRow.is_active.is_(True))
        if category:
            query = query.where(ServiceRow.category == category)
        query = query.order_by(ServiceRow.price, ServiceRow.id)

        with self._session("service listing") as session:
            return [self._to_service(row) for row in session.scalars(query)]

    def upsert_service(self, service: ServiceInfo) -> ServiceInfo:
        with self._session("service upsert") as session:
            session.merge(self._service_row(service))
        return service

    # Bikes

    def add_bike(self, user_id: int, brand: str, model: str, number_plate: str) -> Bike:
        """
        Register a bike.

        Raises:
            DuplicateNumberPlate: If the plate is already registered
        """
        plate = number_plate.strip().upper()
        try:
            with self._session_factory.begin() as session:
                row = BikeRow(user_id=user_id, brand=brand, model=model, number_plate=plate)
                session.add(row)
                session.flush()
                return self._to_bike(row)
        except IntegrityError as exc:
            raise DuplicateNumberPlate(f"Bike with number plate {plate} already exists") from exc
        except SQLAlchemyError as exc:
            logger.exception("Storage failure during bike registration")
            raise RepositoryError("Storage failure during bike registration") from exc

    def get_bike(self, bike_id: int) -> Optional[Bike]:
        with self._session("bike lookup") as session:
            row = session.get(BikeRow, bike_id)
            return self._to_bike(row) if row else None

    # Bookings

    def list_non_cancelled_bookings(self, day: date) -> List[Booking]:
        query = (
            select(BookingRow)
            .where(
                BookingRow.date == day,
                BookingRow.status != BookingStatus.CANCELLED.value,
            )
            .order_by(BookingRow.time_slot)
        )
        with self._session("occupancy read") as session:
            return [self._to_booking(row) for row in session.scalars(query)]

    def insert_booking_if_slot_free(
        self,
        booking: Booking,
        footprint: Sequence[TimeSlot],
    ) -> Booking:
        """
        Insert the booking and claim its footprint in one transaction.

        Raises:
            SlotUnavailable: If any slot of the footprint is already claimed
            RepositoryError: On any other storage failure
        """
        slots = [str(slot) for slot in (footprint or [booking.time_slot])]

        try:
            with self._session_factory.begin() as session:
                row = BookingRow(
                    user_id=booking.user_id,
                    bike_id=booking.bike_id,
                    service_id=booking.service_id,
                    date=booking.date,
                    time_slot=str(booking.time_slot),
                    duration_minutes=booking.duration_minutes,
                    service_type=booking.service_type.value,
                    address=booking.address,
                    total_amount=booking.total_amount,
                    status=booking.status.value,
                    created_at=pendulum.now("UTC"),
                )
                session.add(row)
                session.flush()

                session.add_all(
                    BookingSlotRow(date=booking.date, time_slot=slot, booking_id=row.id)
                    for slot in slots
                )
                try:
                    session.flush()
                except IntegrityError as exc:
                    logger.info("Slot claim for %s %s lost to a concurrent booking", booking.date, slots)
                    raise SlotUnavailable(
                        f"This time slot is already booked: {booking.date} {booking.time_slot}"
                    ) from exc
                stored = self._to_booking(row)
        except SQLAlchemyError as exc:
            logger.exception("Storage failure during booking insert")
            raise RepositoryError("Storage failure during booking insert") from exc

        return stored

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        with self._session("booking lookup") as session:
            row = session.get(BookingRow, booking_id)
            return self._to_booking(row) if row else None

    def list_bookings(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        query = select(BookingRow)
        if user_id is not None:
            query = query.where(BookingRow.user_id == user_id)
        if status is not None:
            query = query.where(BookingRow.status == status.value)
        query = query.order_by(
            BookingRow.date.desc(), BookingRow.time_slot.desc(), BookingRow.id.desc()
        )

        with self._session("booking listing") as session:
            return [self._to_booking(row) for row in session.scalars(query)]

    def set_status(self, booking_id: int, status: BookingStatus) -> Booking:
        with self._session("status update") as session:
            row = session.get(BookingRow, booking_id)
            if row is None:
                raise BookingNotFound(f"Booking not found: {booking_id}")

            row.status = status.value
            if status is BookingStatus.CANCELLED:
                session.execute(
                    delete(BookingSlotRow).where(BookingSlotRow.booking_id == booking_id)
                )
            session.flush()
            return self._to_booking(row)

    # Row mapping

    @staticmethod
    def _service_row(service: ServiceInfo) -> ServiceRow:
        return ServiceRow(
            id=service.id,
            name=service.name,
            description=service.description,
            price=service.price,
            duration_minutes=service.duration_minutes,
            category=service.category,
            is_active=service.is_active,
        )

    @staticmethod
    def _to_service(row: ServiceRow) -> ServiceInfo:
        return ServiceInfo(
            id=row.id,
            name=row.name,
            duration_minutes=row.duration_minutes,
            is_active=row.is_active,
            price=row.price,
            category=row.category,
            description=row.description,
        )

    @staticmethod
    def _to_bike(row: BikeRow) -> Bike:
        return Bike(
            id=row.id,
            user_id=row.user_id,
            brand=row.brand,
            model=row.model,
            number_plate=row.number_plate,
        )

    @staticmethod
    def _to_booking(row: BookingRow) -> Booking:
        return Booking(
            id=row.id,
            date=row.date,
            time_slot=TimeSlot.parse(row.time_slot),
            service_id=row.service_id,
            duration_minutes=row.duration_minutes,
            status=BookingStatus(row.status),
            user_id=row.user_id,
            bike_id=row.bike_id,
            service_type=ServiceType(row.service_type),
            address=row.address,
            total_amount=row.total_amount,
            created_at=pendulum.instance(row.created_at) if row.created_at else None,
        )
