"""SQLAlchemy models for chat rooms and their messages."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import expression

from vakans.infrastructure.database import Base
from vakans.utils import now_in_app_naive_datetime

chat_room_participant_table = Table(
    "chat_room_participant",
    Base.metadata,
    Column(
        "room_id",
        Integer,
        ForeignKey("chat_room.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "user_id",
        Integer,
        ForeignKey("user.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class ChatRoomModel(Base):
    """Database representation of a conversation between two users."""

    __tablename__ = "chat_room"

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, nullable=True, index=True)
    status = Column(String(10), nullable=False, default="OPEN")
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )
    closed_at = Column(DateTime, nullable=True)

    participants = relationship(
        "UserModel", secondary=chat_room_participant_table, lazy="selectin"
    )
    messages = relationship(
        "ChatMessageModel",
        back_populates="room",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChatMessageModel.id",
    )


class ChatMessageModel(Base):
    """Database representation of a single chat message."""

    __tablename__ = "chat_message"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(
        Integer,
        ForeignKey("chat_room.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    content = Column(Text, nullable=False, default="")
    type = Column(String(10), nullable=False, default="TEXT")
    file_url = Column(String(500), nullable=True)
    file_name = Column(String(255), nullable=True)
    file_size = Column(Integer, nullable=True)
    is_read = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    read_at = Column(DateTime, nullable=True)
    is_deleted = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)

    room = relationship("ChatRoomModel", back_populates="messages")


__all__ = ["ChatMessageModel", "ChatRoomModel", "chat_room_participant_table"]
