"""SQLAlchemy model for the snapshots table (schema reference + DDL source)."""

from sqlalchemy import Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from asset_service.models.asset import Base


class Snapshot(Base):
    __tablename__ = "snapshots"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[str] = mapped_column("createdAt", Text, nullable=False)
    active_signal_ids: Mapped[list[str]] = mapped_column(
        "activeSignalIds", ARRAY(Text), nullable=False
    )
    hidden_signal_ids: Mapped[list[str]] = mapped_column(
        "hiddenSignalIds", ARRAY(Text), nullable=False
    )
    date_range: Mapped[str] = mapped_column("dateRange", Text, nullable=False)
    custom_colors: Mapped[str | None] = mapped_column("customColors", Text)

    def __repr__(self) -> str:
        return f"<Snapshot {self.id} {self.name!r}>"
