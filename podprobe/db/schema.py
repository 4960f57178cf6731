"""Database schema for the task manager and blog APIs."""

from datetime import timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator

from podprobe.identity import utcnow

Base = declarative_base()

TASK_CATEGORIES = ("Personal", "Work", "Education", "Shopping", "Health", "Other")
TASK_PRIORITIES = ("low", "medium", "high")


class UTCDateTime(TypeDecorator):
    """Timestamp stored as naive UTC and loaded back as an aware UTC datetime.

    SQLite has no timezone support, so offsets are normalised on the way in.
    Naive values are taken to be UTC already.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class TaskDB(Base):
    """A to-do item of the task manager."""

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    category = Column(String(20), nullable=False, default="Other", index=True)
    priority = Column(String(10), nullable=False, default="medium", index=True)
    completed = Column(Boolean, nullable=False, default=False, index=True)
    due_date = Column(UTCDateTime(), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow, index=True)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)


class PostDB(Base):
    """A blog post; comments are deleted with it."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    author = Column(String(100), nullable=False)
    published = Column(Boolean, nullable=False, default=False)
    published_at = Column(UTCDateTime(), nullable=True)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow, index=True)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    comments = relationship(
        "CommentDB",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="desc(CommentDB.id)",
    )


class CommentDB(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    author = Column(String(100), nullable=False)
    content = Column(String(500), nullable=False)
    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    post = relationship("PostDB", back_populates="comments")
