"""SQLAlchemy ORM models for the adventure tables."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    event,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

JsonList = JSON().with_variant(JSONB(), "postgresql")


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class AdventureRow(Base):
    """Adventure table - aggregate root, children cascade on delete."""

    __tablename__ = "adventures"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[str | None] = mapped_column(Text, nullable=True)
    difficulty: Mapped[str | None] = mapped_column(Text, nullable=True)
    budget: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    color_hex: Mapped[str | None] = mapped_column(Text, nullable=True)
    destinations: Mapped[list[Any] | None] = mapped_column(JsonList, nullable=True)
    highlights: Mapped[list[Any] | None] = mapped_column(JsonList, nullable=True)
    total_cost: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    flights: Mapped[list["AdventureFlightRow"]] = relationship(
        back_populates="adventure", cascade="all, delete-orphan", passive_deletes=True
    )
    places: Mapped[list["AdventurePlaceRow"]] = relationship(
        back_populates="adventure", cascade="all, delete-orphan", passive_deletes=True
    )
    badges: Mapped[list["AdventureBadgeRow"]] = relationship(
        back_populates="adventure", cascade="all, delete-orphan", passive_deletes=True
    )


class AdventureFlightRow(Base):
    """Flight legs of an adventure."""

    __tablename__ = "adventure_flights"
    __table_args__ = (Index("idx_flights_adventure", "adventure_id", "position"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    adventure_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("adventures.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    route: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    adventure: Mapped["AdventureRow"] = relationship(back_populates="flights")


class AdventurePlaceRow(Base):
    """Itinerary stops of an adventure, ordered by position."""

    __tablename__ = "adventure_places"
    __table_args__ = (Index("idx_places_adventure", "adventure_id", "position"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    adventure_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("adventures.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    nights: Mapped[int] = mapped_column(Integer, nullable=False)
    is_start_point: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    hotel_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_per_night: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    adventure: Mapped["AdventureRow"] = relationship(back_populates="places")


class AdventureBadgeRow(Base):
    """Badge tokens of an adventure."""

    __tablename__ = "adventure_badges"
    __table_args__ = (Index("idx_badges_adventure", "adventure_id", "position"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    adventure_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("adventures.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    badge_emoji: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    adventure: Mapped["AdventureRow"] = relationship(back_populates="badges")


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """SQLite only enforces FKs (and cascades) when asked to, per connection."""
    if "sqlite" in type(dbapi_connection).__module__:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
