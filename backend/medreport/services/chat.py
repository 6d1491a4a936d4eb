"""Chat orchestration for a single report/question request.

One pass per request: stage and extract the optional upload, assemble the
prompt, replay the client-supplied history to the model, store the exchange for
logged-in users, and produce the JSON outcome.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Literal

from fastapi import UploadFile
from pydantic import BaseModel, TypeAdapter, ValidationError
from sqlmodel import Session

from medreport.core.config import Settings
from medreport.core.sessions import CurrentUser
from medreport.services import history as history_store
from medreport.services.extractor import ExtractedReport, ExtractionError, extract_upload
from medreport.services.llm.base import BaseLLMProvider, ProviderError, ProviderRateLimited

logger = logging.getLogger(__name__)

PLACEHOLDER_PROMPT = "Please analyze this report."
REPORT_HEADER = "\n\nHere is the content of the attached medical report:\n"
RATE_LIMIT_MESSAGE = "Usage limit exceeded for this model. Please try again later."
GENERIC_ERROR_MESSAGE = "Sorry, I encountered an error processing your request."


class HistoryPart(BaseModel):
    text: str = ""


class HistoryTurn(BaseModel):
    role: Literal["user", "model"]
    parts: list[HistoryPart]


_history_adapter = TypeAdapter(list[HistoryTurn])


def parse_history(raw: str | None) -> list[dict]:
    """Decode client history. Anything malformed counts as no history."""
    if not raw:
        return []
    try:
        turns = _history_adapter.validate_python(json.loads(raw))
    except (json.JSONDecodeError, RecursionError, ValidationError) as e:
        logger.warning(f"Error parsing history, continuing without it: {e}")
        return []
    return [turn.model_dump() for turn in turns]


def build_parts(message: str | None, report: ExtractedReport | None) -> tuple[str, list[dict]]:
    """Return the prompt text and the outbound message parts."""
    prompt = message or PLACEHOLDER_PROMPT
    parts: list[dict] = []
    if report is not None:
        if report.text is not None:
            prompt += REPORT_HEADER + report.text
        if report.attachment is not None:
            parts.append(report.attachment.as_part())
    parts.append({"text": prompt})
    return prompt, parts


@dataclass
class ChatOutcome:
    status_code: int
    body: dict = field(default_factory=dict)

    @classmethod
    def ok(cls, text: str) -> "ChatOutcome":
        return cls(200, {"success": True, "response": text})

    @classmethod
    def failed(cls, status_code: int, message: str) -> "ChatOutcome":
        return cls(status_code, {"success": False, "message": message})


class ChatOrchestrator:
    def __init__(self, provider: BaseLLMProvider, settings: Settings, session: Session):
        self.provider = provider
        self.settings = settings
        self.session = session

    async def handle(
        self,
        message: str | None,
        report: UploadFile | None,
        raw_history: str | None,
        user: CurrentUser | None,
    ) -> ChatOutcome:
        try:
            extracted = None
            if report is not None and report.filename:
                extracted = await extract_upload(report, self.settings.upload_dir)

            prompt, parts = build_parts(message, extracted)
            text = await self.provider.send(parse_history(raw_history), parts)
        except ProviderRateLimited as e:
            logger.warning(f"Provider rate limit hit: {e}")
            return ChatOutcome.failed(429, RATE_LIMIT_MESSAGE)
        except (ExtractionError, ProviderError):
            logger.exception("Error processing chat request")
            return ChatOutcome.failed(500, GENERIC_ERROR_MESSAGE)
        except Exception:
            logger.exception("Unexpected error processing chat request")
            return ChatOutcome.failed(500, GENERIC_ERROR_MESSAGE)

        if user is not None:
            await self.save_exchange(user, message, prompt, text)

        return ChatOutcome.ok(text)

    async def save_exchange(
        self, user: CurrentUser, message: str | None, prompt: str, text: str
    ) -> None:
        """Best-effort history logging. Failures are logged and never reach the caller."""
        try:
            await asyncio.to_thread(
                history_store.record_exchange,
                self.session,
                user_id=user.id,
                title=history_store.make_title(message),
                user_text=prompt,
                model_text=text,
            )
        except Exception:
            logger.exception(f"Error saving chat history for user {user.id}")
            self.session.rollback()
