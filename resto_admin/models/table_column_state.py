import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from resto_admin.db import Base


class TableColumnState(Base):
    __tablename__ = "table_column_state"
    __table_args__ = (
        UniqueConstraint(
            "owner_id",
            "table_id",
            "column_key",
            name="uq_table_column_state_owner_table_column",
        ),
        Index("ix_table_column_state_owner_table_order", "owner_id", "table_id", "display_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str] = mapped_column(String(120), nullable=False)
    table_id: Mapped[str] = mapped_column(String(120), nullable=False)
    column_key: Mapped[str] = mapped_column(String(120), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    pinned: Mapped[str | None] = mapped_column(String(8))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )
