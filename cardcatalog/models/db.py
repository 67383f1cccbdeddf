"""
SQLAlchemy ORM models for the canonical card catalog.

Cards are keyed by (game, name); printings hang off exactly one card and are
keyed by set and collector number (plus style for some sources).
"""

from datetime import datetime

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CardDB(Base):
    """
    A canonical card, independent of any printing.

    Source-specific attributes that have no column of their own
    (cost, power, traits, ...) live in details_json.
    """

    __tablename__ = "cards"
    __table_args__ = (UniqueConstraint("game", "name", name="uq_card_game_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game: Mapped[str] = mapped_column(String(100), index=True)
    name: Mapped[str] = mapped_column(String(255), index=True)
    card_type: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    details_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    printings: Mapped[list["CardPrintingDB"]] = relationship(back_populates="card")

    def __repr__(self) -> str:
        return f"<CardDB(game={self.game}, name={self.name})>"


class CardPrintingDB(Base):
    """
    One physical printing of a card (set, collector number, finish).
    """

    __tablename__ = "card_printings"
    __table_args__ = (
        UniqueConstraint("card_id", "set", "number", "style", name="uq_printing_card_set_number"),
        Index("ix_printing_set_number", "set", "number"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    card_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("cards.id", ondelete="CASCADE"), index=True
    )
    set_code: Mapped[str] = mapped_column("set", String(50))
    number: Mapped[str] = mapped_column(String(50))
    rarity: Mapped[str] = mapped_column(String(50))
    style: Mapped[str] = mapped_column(String(50), default="Standard")
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    details_json: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    card: Mapped["CardDB"] = relationship(back_populates="printings")

    def __repr__(self) -> str:
        return f"<CardPrintingDB(set={self.set_code}, number={self.number}, style={self.style})>"
