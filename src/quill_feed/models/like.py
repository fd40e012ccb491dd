"""Models capturing like interactions on posts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from quill_feed.db.session import Base
from quill_feed.db.time import utcnow


class PostLike(Base):
    """Per-user like on a post; the row existing means "liked"."""

    __tablename__ = "likes"
    __table_args__ = (Index("ix_likes_post_id", "post_id"),)

    post_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("posts.id", ondelete="CASCADE"),
        primary_key=True,
    )

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )

    # Composite primary key prevents duplicate likes from the same user.

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
