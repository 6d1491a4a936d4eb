"""REST API for a user's saved conversation records."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from medreport.core.database import get_session
from medreport.core.sessions import CurrentUser, require_user
from medreport.services import history as history_store

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/")
async def list_conversations(
    user: CurrentUser = Depends(require_user),
    session: Session = Depends(get_session),
):
    return [
        {
            "id": r.id,
            "title": r.title,
            "created_at": r.created_at.isoformat(),
            "updated_at": r.updated_at.isoformat(),
        }
        for r in history_store.list_records(session, user.id)
    ]


@router.get("/{conversation_id}")
async def get_conversation(
    conversation_id: int,
    user: CurrentUser = Depends(require_user),
    session: Session = Depends(get_session),
):
    record = history_store.get_record(session, user.id, conversation_id)
    if not record:
        logger.debug(f"Conversation {conversation_id} not found for user {user.id}")
        raise HTTPException(status_code=404, detail="Conversation not found")

    return {
        "id": record.id,
        "title": record.title,
        "created_at": record.created_at.isoformat(),
        "updated_at": record.updated_at.isoformat(),
        "turns": [
            {
                "role": t.role,
                "content": t.content,
                "timestamp": t.timestamp.isoformat(),
            }
            for t in history_store.get_turns(session, record.id)  # type: ignore[arg-type]
        ],
    }
