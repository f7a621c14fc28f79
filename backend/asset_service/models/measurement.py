"""SQLAlchemy model for the measurements table (schema reference + DDL source)."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Float, Identity, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from asset_service.models.asset import Base


class Measurement(Base):
    __tablename__ = "measurements"

    id: Mapped[int] = mapped_column(BigInteger, Identity(), primary_key=True)
    signal_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    value: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)

    def __repr__(self) -> str:
        return f"<Measurement {self.signal_id}={self.value} {self.status}>"
