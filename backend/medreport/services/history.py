"""Conversation record storage: one flat record per chat exchange."""

import logging

from sqlmodel import Session, select

from medreport.models.conversation import ConversationRecord, Turn

logger = logging.getLogger(__name__)

TITLE_LENGTH = 50
FALLBACK_TITLE = "Report Analysis"


def make_title(message: str | None) -> str:
    return message[:TITLE_LENGTH] if message else FALLBACK_TITLE


def record_exchange(
    session: Session, user_id: int, title: str, user_text: str, model_text: str
) -> ConversationRecord:
    """Store one user/model pair as a new record. Never appends to an existing one."""
    record = ConversationRecord(user_id=user_id, title=title)
    session.add(record)
    session.flush()
    session.add(Turn(conversation_id=record.id, role="user", content=user_text))  # type: ignore[arg-type]
    session.add(Turn(conversation_id=record.id, role="model", content=model_text))  # type: ignore[arg-type]
    session.commit()
    session.refresh(record)
    logger.debug(f"Saved conversation record {record.id} for user {user_id}")
    return record


def list_records(session: Session, user_id: int) -> list[ConversationRecord]:
    return list(
        session.exec(
            select(ConversationRecord)
            .where(ConversationRecord.user_id == user_id)
            .order_by(ConversationRecord.created_at.desc(), ConversationRecord.id.desc())  # type: ignore
        ).all()
    )


def get_record(session: Session, user_id: int, record_id: int) -> ConversationRecord | None:
    record = session.get(ConversationRecord, record_id)
    if record is None or record.user_id != user_id:
        return None
    return record


def get_turns(session: Session, record_id: int) -> list[Turn]:
    return list(
        session.exec(
            select(Turn)
            .where(Turn.conversation_id == record_id)
            .order_by(Turn.timestamp, Turn.id)  # type: ignore
        ).all()
    )
