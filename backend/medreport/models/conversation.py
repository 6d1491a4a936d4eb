"""Conversation record and turn models for chat history persistence."""

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, Relationship, SQLModel


class ConversationRecord(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    title: str = Field(default="New Chat")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    turns: list["Turn"] = Relationship(back_populates="conversation")


class Turn(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversationrecord.id")
    role: str  # "user" | "model"
    content: str  # Markdown
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    conversation: Optional[ConversationRecord] = Relationship(back_populates="turns")
