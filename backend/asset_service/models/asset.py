"""SQLAlchemy model for the assets table (schema reference + DDL source)."""

from sqlalchemy import Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class Asset(Base):
    __tablename__ = "assets"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    # Site | Plant | Train | Unit | Signal Container | Signal (not enforced)
    type: Mapped[str] = mapped_column(Text, nullable=False)
    # NULL marks a root (Site) node
    parent_id: Mapped[str | None] = mapped_column("parentId", Text, index=True)

    def __repr__(self) -> str:
        return f"<Asset {self.name} ({self.type}) parent={self.parent_id}>"
