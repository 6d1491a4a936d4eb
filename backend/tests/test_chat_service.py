"""Tests for prompt assembly, history parsing and best-effort persistence."""

import asyncio
import json
import threading
from unittest.mock import patch

from sqlmodel import Session, select

from tests.conftest import FakeProvider, test_engine
from medreport.core.config import Settings
from medreport.core.sessions import CurrentUser
from medreport.models.conversation import ConversationRecord
from medreport.models.user import User
from medreport.services.chat import (
    PLACEHOLDER_PROMPT,
    ChatOrchestrator,
    build_parts,
    parse_history,
)
from medreport.services.extractor import ExtractedReport, InlineAttachment


def test_parse_history_valid():
    raw = json.dumps([{"role": "user", "parts": [{"text": "hi"}]}])
    assert parse_history(raw) == [{"role": "user", "parts": [{"text": "hi"}]}]


def test_parse_history_invalid_inputs():
    assert parse_history(None) == []
    assert parse_history("") == []
    assert parse_history("[1, 2") == []
    assert parse_history('{"role": "user"}') == []
    assert parse_history('[{"role": "system", "parts": []}]') == []


def test_parse_history_too_deeply_nested():
    assert parse_history("[" * 50000) == []


def test_build_parts_message_only():
    prompt, parts = build_parts("Is 140 mg/dL glucose high?", None)
    assert prompt == "Is 140 mg/dL glucose high?"
    assert parts == [{"text": prompt}]


def test_build_parts_image_precedes_text():
    report = ExtractedReport(attachment=InlineAttachment(mime_type="image/png", data="aGk="))
    prompt, parts = build_parts(None, report)
    assert prompt == PLACEHOLDER_PROMPT
    assert parts == [
        {"inline_data": {"mime_type": "image/png", "data": "aGk="}},
        {"text": PLACEHOLDER_PROMPT},
    ]


def _make_user():
    with Session(test_engine) as session:
        user = User(username="dana", password_hash="x")
        session.add(user)
        session.commit()
        session.refresh(user)
        return CurrentUser(id=user.id, username=user.username)


def test_persistence_failure_still_returns_answer(tmp_path):
    user = _make_user()
    provider = FakeProvider(reply="Your iron is low.")
    with Session(test_engine) as session:
        orchestrator = ChatOrchestrator(provider, Settings(upload_dir=tmp_path), session)
        with patch(
            "medreport.services.chat.history_store.record_exchange",
            side_effect=RuntimeError("database is locked"),
        ):
            outcome = asyncio.run(orchestrator.handle("Ferritin 8?", None, None, user))

    assert outcome.status_code == 200
    assert outcome.body == {"success": True, "response": "Your iron is low."}
    with Session(test_engine) as session:
        assert session.exec(select(ConversationRecord)).all() == []


def test_guest_request_does_not_persist(tmp_path):
    provider = FakeProvider()
    with Session(test_engine) as session:
        orchestrator = ChatOrchestrator(provider, Settings(upload_dir=tmp_path), session)
        outcome = asyncio.run(orchestrator.handle("Hi", None, None, None))
        assert outcome.status_code == 200
        assert session.exec(select(ConversationRecord)).all() == []


def test_long_message_title_is_truncated(tmp_path):
    user = _make_user()
    message = "x" * 80
    with Session(test_engine) as session:
        orchestrator = ChatOrchestrator(FakeProvider(), Settings(upload_dir=tmp_path), session)
        asyncio.run(orchestrator.handle(message, None, None, user))
        record = session.exec(select(ConversationRecord)).one()
        assert record.title == "x" * 50


def test_record_is_written_off_the_event_loop_thread(tmp_path):
    user = _make_user()
    threads = []

    def fake_record_exchange(session, **kwargs):
        threads.append(threading.get_ident())

    with Session(test_engine) as session:
        orchestrator = ChatOrchestrator(FakeProvider(), Settings(upload_dir=tmp_path), session)
        with patch(
            "medreport.services.chat.history_store.record_exchange",
            side_effect=fake_record_exchange,
        ) as record_exchange:
            outcome = asyncio.run(orchestrator.handle("Vitamin D 12 ng/mL?", None, None, user))

    assert outcome.status_code == 200
    assert record_exchange.call_args.kwargs["title"] == "Vitamin D 12 ng/mL?"
    assert threads and threads[0] != threading.get_ident()
