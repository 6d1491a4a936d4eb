from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlmodel import Session

from medreport.core.config import Settings, get_settings
from medreport.core.database import get_session
from medreport.core.sessions import CurrentUser, get_current_user
from medreport.services.chat import ChatOrchestrator
from medreport.services.llm.base import BaseLLMProvider

router = APIRouter()


def get_provider(request: Request) -> BaseLLMProvider:
    """The provider built once in the app lifespan."""
    return request.app.state.llm_provider


def get_orchestrator(
    provider: BaseLLMProvider = Depends(get_provider),
    settings: Settings = Depends(get_settings),
    session: Session = Depends(get_session),
) -> ChatOrchestrator:
    return ChatOrchestrator(provider, settings, session)


@router.post("")
async def chat(
    message: str | None = Form(None),
    history: str | None = Form(None),
    report: UploadFile | None = File(None),
    user: CurrentUser | None = Depends(get_current_user),
    orchestrator: ChatOrchestrator = Depends(get_orchestrator),
):
    outcome = await orchestrator.handle(message, report, history, user)
    return JSONResponse(status_code=outcome.status_code, content=outcome.body)
