"""SQLAlchemy database models.

Embedded documents (artifact analysis and metadata, story feedback and
generation parameters, user preferences) are stored as JSONB columns on the
owning row. Interactions reference users and artifacts by id only, without
foreign keys, since dangling ids are tolerated.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class ArtifactModel(Base):
    __tablename__ = "artifacts"
    __table_args__ = (
        Index("ix_artifacts_culture_period", "culture", "period"),
        Index("ix_artifacts_source", "source", "source_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(500), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    culture = Column(String(100), nullable=True, index=True)
    period = Column(String(100), nullable=True, index=True)
    material = Column(String(100), nullable=True)
    image_url = Column(String(1024), nullable=True)
    thumbnail_url = Column(String(1024), nullable=True)
    storage_key = Column(String(512), nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSONB, nullable=False, default=dict)
    analysis = Column(JSONB(none_as_null=True), nullable=True)
    source = Column(String(100), nullable=True)
    source_id = Column(String(255), nullable=True)
    source_url = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class StoryModel(Base):
    __tablename__ = "stories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    artifact_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    genre = Column(String(20), nullable=False, index=True)
    length = Column(String(10), nullable=False)
    rating = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)
    feedback = Column(JSONB, nullable=False, default=list)
    generation_params = Column(JSONB(none_as_null=True), nullable=True)
    generated_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class UserModel(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    username = Column(String(100), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(10), nullable=False, default="USER")
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    preferences = Column(JSONB, nullable=False, default=dict)
    favorite_artifacts = Column(ARRAY(UUID(as_uuid=True)), nullable=False, default=list)
    enabled = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login_at = Column(DateTime, nullable=True)


class UserInteractionModel(Base):
    """Append-only interaction log (view, like, share, save, ...)."""

    __tablename__ = "user_interactions"
    __table_args__ = (
        Index("ix_interactions_user_artifact", "user_id", "artifact_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    artifact_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    session_id = Column(String(255), nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
