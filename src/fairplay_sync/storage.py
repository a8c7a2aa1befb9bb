"""SQLAlchemy persistence for reconciled bookings."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

import structlog
from sqlalchemy import DateTime, Engine, String, UniqueConstraint, create_engine, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from .errors import StorageFailure
from .models import BookingRecord, PartnerStat, Sport

LOGGER = structlog.get_logger(__name__)


class BookingStore(Protocol):
    """Storage used by the reconciler.

    ``upsert`` must be atomic per natural key: two concurrent calls for the
    same key leave exactly one row behind.
    """

    def find(self, sport: Sport, court: str, date: str, start_time: str) -> Optional[BookingRecord]:
        ...

    def upsert(self, record: BookingRecord) -> None:
        ...


class Base(DeclarativeBase):
    pass


class BookingRow(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("sport", "court", "date", "start_time", name="bookings_unique_slot"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sport: Mapped[str] = mapped_column(String(32), nullable=False)
    court: Mapped[str] = mapped_column(String(128), nullable=False)
    date: Mapped[str] = mapped_column(String(10), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    occupants: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    partner: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<BookingRow {self.sport} {self.court} {self.date} {self.start_time}>"

    def to_record(self) -> BookingRecord:
        return BookingRecord(
            sport=Sport(self.sport),
            court=self.court,
            date=self.date,
            start_time=self.start_time,
            end_time=self.end_time,
            occupants=self.occupants,
            partner=self.partner,
            last_seen_at=self.last_seen_at,
        )


def create_schema(engine: Engine) -> None:
    Base.metadata.create_all(engine)


class SqlBookingStore:
    """Booking store backed by any SQLAlchemy engine."""

    def __init__(self, engine: Engine):
        self._engine = engine

    @classmethod
    def from_url(cls, database_url: str) -> "SqlBookingStore":
        try:
            engine = create_engine(database_url)
            create_schema(engine)
        except SQLAlchemyError as exc:
            LOGGER.error("storage.open.failed", error=str(exc))
            raise StorageFailure(f"Cannot open booking database: {exc}") from exc
        return cls(engine)

    def find(self, sport: Sport, court: str, date: str, start_time: str) -> Optional[BookingRecord]:
        query = select(BookingRow).where(
            BookingRow.sport == Sport(sport).value,
            BookingRow.court == court,
            BookingRow.date == date,
            BookingRow.start_time == start_time,
        )
        try:
            with Session(self._engine) as session:
                row = session.scalars(query).first()
                return row.to_record() if row else None
        except SQLAlchemyError as exc:
            LOGGER.error("storage.find.failed", error=str(exc))
            raise StorageFailure(f"Booking lookup failed: {exc}") from exc

    def upsert(self, record: BookingRecord) -> None:
        values = {
            "sport": record.sport.value,
            "court": record.court,
            "date": record.date,
            "start_time": record.start_time,
            "end_time": record.end_time,
            "occupants": record.occupants,
            "partner": record.partner,
            "last_seen_at": record.last_seen_at,
        }
        try:
            if self._engine.dialect.name in ("sqlite", "postgresql"):
                self._native_upsert(values)
            else:
                self._transactional_upsert(values)
        except SQLAlchemyError as exc:
            LOGGER.error("storage.upsert.failed", key=record.key, error=str(exc))
            raise StorageFailure(f"Booking upsert failed: {exc}") from exc

    def list_all(self) -> List[BookingRecord]:
        """Every stored booking, most recent first."""
        query = select(BookingRow).order_by(BookingRow.date.desc(), BookingRow.start_time.desc())
        try:
            with Session(self._engine) as session:
                return [row.to_record() for row in session.scalars(query)]
        except SQLAlchemyError as exc:
            LOGGER.error("storage.list.failed", error=str(exc))
            raise StorageFailure(f"Booking listing failed: {exc}") from exc

    def partner_stats(self) -> List[PartnerStat]:
        """Sessions played with each partner, most frequent first."""
        sessions = func.count(BookingRow.id).label("sessions")
        query = (
            select(BookingRow.partner, sessions, func.max(BookingRow.date).label("last_date"))
            .where(BookingRow.partner.is_not(None))
            .group_by(BookingRow.partner)
            .order_by(sessions.desc(), BookingRow.partner)
        )
        try:
            with Session(self._engine) as session:
                return [
                    PartnerStat(partner=partner, sessions=count, last_date=last_date)
                    for partner, count, last_date in session.execute(query)
                ]
        except SQLAlchemyError as exc:
            LOGGER.error("storage.partners.failed", error=str(exc))
            raise StorageFailure(f"Partner statistics failed: {exc}") from exc

    def _native_upsert(self, values: dict) -> None:
        dialect = sqlite if self._engine.dialect.name == "sqlite" else postgresql
        statement = dialect.insert(BookingRow).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=["sport", "court", "date", "start_time"],
            set_={
                "occupants": statement.excluded.occupants,
                "partner": statement.excluded.partner,
                "last_seen_at": statement.excluded.last_seen_at,
            },
        )
        with self._engine.begin() as connection:
            connection.execute(statement)

    def _transactional_upsert(self, values: dict) -> None:
        try:
            with self._engine.begin() as connection:
                connection.execute(BookingRow.__table__.insert().values(**values))
                return
        except IntegrityError:
            LOGGER.debug("storage.upsert.conflict", sport=values["sport"], date=values["date"])

        statement = (
            update(BookingRow)
            .where(
                BookingRow.sport == values["sport"],
                BookingRow.court == values["court"],
                BookingRow.date == values["date"],
                BookingRow.start_time == values["start_time"],
            )
            .values(
                occupants=values["occupants"],
                partner=values["partner"],
                last_seen_at=values["last_seen_at"],
            )
        )
        with self._engine.begin() as connection:
            connection.execute(statement)
