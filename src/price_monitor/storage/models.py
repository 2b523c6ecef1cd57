"""ORM tables for tracked items and their price history."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utc_now() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


class MonitoredItemRow(Base):
    """A tracked product page."""

    __tablename__ = "monitored_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    source_url: Mapped[str] = mapped_column(String(1024))
    # Uniqueness key: trimmed, case-folded source_url.
    normalized_url: Mapped[str] = mapped_column(String(1024), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(255))
    image_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    currency: Mapped[str] = mapped_column(String(8))
    initial_price: Mapped[float] = mapped_column(Float)
    current_price: Mapped[float] = mapped_column(Float)
    target_price: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_monitoring: Mapped[bool] = mapped_column(Boolean, default=True)
    last_checked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)

    price_points: Mapped[list["PricePointRow"]] = relationship(
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="PricePointRow.position",
    )

    def __repr__(self) -> str:
        return (
            f"<MonitoredItemRow(id={self.id}, name={self.name!r}, "
            f"current_price={self.current_price}, is_monitoring={self.is_monitoring})>"
        )


class PricePointRow(Base):
    """One observed price. Rows are only ever appended."""

    __tablename__ = "price_points"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("monitored_items.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer)
    price: Mapped[float] = mapped_column(Float)
    observed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    item: Mapped["MonitoredItemRow"] = relationship(back_populates="price_points")
