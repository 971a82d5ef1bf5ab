"""
SQLAlchemy ORM models for persistent storage.

Models mirror the domain models but add database persistence.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current time used for all row timestamps."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CharacterEnrichmentCacheDB(Base):
    """
    Last known enrichment result for a character and season.

    Created on the first fetch attempt for a key and updated in place on
    every later attempt. Never deleted automatically.
    """

    __tablename__ = "character_enrichment_cache"
    __table_args__ = (
        UniqueConstraint(
            "region", "realm", "character_name", "season_key", name="uq_character_season"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    region: Mapped[str] = mapped_column(String(8), index=True)
    realm: Mapped[str] = mapped_column(String(100))
    character_name: Mapped[str] = mapped_column(String(50))
    season_key: Mapped[str] = mapped_column(String(100), default="latest")

    # Versioned player card record (see StoredPlayerCard)
    player_card: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)

    wcl_last_fetched_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    fetch_status: Mapped[str] = mapped_column(String(20), default="partial")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Timestamps; updated_at is the sole staleness signal
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return (
            f"<CharacterEnrichmentCacheDB({self.character_name}-{self.realm}-{self.region}, "
            f"season={self.season_key}, status={self.fetch_status})>"
        )


class TierConfigDB(Base):
    """
    Raid tier configuration.

    At most one row is active; a partial unique index enforces it.
    """

    __tablename__ = "season_config"
    __table_args__ = (
        Index(
            "uq_season_config_single_active",
            "is_active",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tier_name: Mapped[str] = mapped_column(String(255))
    wcl_tier_url: Mapped[str] = mapped_column(Text)
    wcl_zone_id: Mapped[int] = mapped_column(Integer)

    # Encounter ids in tier order, and [{"id": ..., "name": ...}] display names
    encounter_order: Mapped[list[int]] = mapped_column(JSON, default=list)
    encounter_names: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<TierConfigDB(name={self.tier_name}, zone={self.wcl_zone_id}, active={self.is_active})>"
