"""SQLAlchemy database models."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSON, UUID
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class ComicModel(Base):
    __tablename__ = "comics"

    # Provider-prefixed: "cv-<id>" or "ai-<hex>"
    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False, index=True)
    writer = Column(String(255), nullable=False, default="Unknown")
    artist = Column(String(255), nullable=False, default="Unknown")
    publisher = Column(String(255), nullable=False, default="", server_default="")
    year = Column(Integer, nullable=False)
    description = Column(Text, nullable=False, default="")
    # Generated covers are stored inline as data: URLs
    cover_url = Column(Text, nullable=False, default="")
    series = Column(String(255), nullable=True)
    volume = Column(String(64), nullable=True)
    insights = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owners = relationship(
        "UserComicModel", back_populates="comic", lazy="selectin", cascade="all, delete-orphan"
    )


class UserComicModel(Base):
    __tablename__ = "user_comics"
    __table_args__ = (UniqueConstraint("user_id", "comic_id", name="uq_user_comic"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Opaque id from the upstream identity provider
    user_id = Column(String(255), nullable=False, index=True)
    comic_id = Column(String(64), ForeignKey("comics.id"), nullable=False, index=True)
    read_states = Column(ARRAY(String(16)), nullable=False, default=list)
    rating = Column(Float, nullable=True)
    review = Column(Text, nullable=True)
    is_favorite = Column(Boolean, default=False, nullable=False)
    date_read = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    comic = relationship("ComicModel", back_populates="owners", lazy="selectin")
