from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from symptom_triage.agents.triage import (
    AgentRuntimeConfig,
    IntakeSession,
    SessionStateError,
    classify,
    confirm_and_save,
    derive_severity_level,
    edit_field,
    generate_next_question,
    generate_recommendation,
    generate_summary,
    handle_user_message,
    start_session,
)
from symptom_triage.core import (
    ClassifyRequest,
    ConfirmResponse,
    ConversationStateModel,
    CreateSessionRequest,
    FieldEditRequest,
    MessageRequest,
    MessageResponse,
    NextQuestionRequest,
    NextQuestionResponse,
    PriorSymptomResponse,
    RecommendationRequest,
    RecommendationResponse,
    RelatedInsightResponse,
    SessionResponse,
    SeverityRequest,
    SeverityResponse,
    StatusResponse,
    SummaryRequest,
    SummaryResponse,
)
from symptom_triage.core.error_mapping import build_error_payload_from_exception
from symptom_triage.core.logging_utils import log_event, pop_session_metrics
from symptom_triage.storage import PersistenceError

router = APIRouter()

SAVE_FAILED_MESSAGE = "Failed to save symptom. Please try again."


def get_ai_services(request: Request) -> dict:
    return request.app.state.services


def _severity_enabled(services: dict) -> bool:
    settings = services.get("settings")
    return bool(settings and settings.severity_phase_enabled)


@router.get("/", response_model=StatusResponse)
def read_root(services: dict = Depends(get_ai_services)):
    settings = services.get("settings")
    provider = settings.gateway.provider if settings else None
    return {"status": "online", "system": "Symptom Triage", "ai_provider": provider}


# ============= Stateless generation =============

@router.post("/next-question", response_model=NextQuestionResponse)
async def next_question(request: NextQuestionRequest, services: dict = Depends(get_ai_services)):
    result = await generate_next_question(
        services["gateway"],
        request.state.to_state(),
        request.user_message,
        severity_enabled=_severity_enabled(services),
    )
    return NextQuestionResponse(
        message=result.message,
        new_state=ConversationStateModel.from_state(result.new_state),
        phase=result.phase,
    )


@router.post("/summary", response_model=SummaryResponse)
async def summary(request: SummaryRequest, services: dict = Depends(get_ai_services)):
    result = await generate_summary(
        services["gateway"],
        request.state.to_state(),
        request.additional_info,
    )
    return SummaryResponse.from_result(result)


@router.post("/recommendation", response_model=RecommendationResponse)
async def recommendation(request: RecommendationRequest, services: dict = Depends(get_ai_services)):
    result = await generate_recommendation(
        services["gateway"],
        request.state.to_state(),
        summary=request.summary,
        additional_info=request.additional_info,
    )
    return RecommendationResponse.from_result(result)


@router.post("/classify", response_model=RecommendationResponse)
def classify_symptom(request: ClassifyRequest):
    return RecommendationResponse.from_result(
        classify(request.symptom, request.duration, request.context)
    )


@router.post("/severity", response_model=SeverityResponse)
def severity(request: SeverityRequest):
    return {"severity_level": derive_severity_level(request.symptom, request.severity)}


# ============= Intake sessions =============

def _session_payload(session: IntakeSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        user_id=session.user_id,
        state=ConversationStateModel.from_state(session.state),
        messages=list(session.messages),
        additional_info=session.additional_info,
        summary=SummaryResponse.from_result(session.summary) if session.summary else None,
        recommendation=(
            RecommendationResponse.from_result(session.recommendation)
            if session.recommendation
            else None
        ),
        related_symptoms=[
            PriorSymptomResponse.from_snapshot(snapshot) for snapshot in session.related_symptoms
        ],
        related_insight=(
            RelatedInsightResponse.from_result(session.related_insight)
            if session.related_insight
            else None
        ),
        related_error=session.related_error,
        created_at=session.created_at,
        completed_at=session.completed_at,
    )


async def _get_session(session_id: str, services: dict) -> IntakeSession:
    session = await services["sessions"].get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _ensure_open(session: IntakeSession) -> None:
    if session.completed_at is not None:
        raise HTTPException(status_code=409, detail="Session has already been saved")


@router.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session(request: CreateSessionRequest, services: dict = Depends(get_ai_services)):
    session = start_session(user_id=request.user_id)
    await services["sessions"].add(session)
    return _session_payload(session)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, services: dict = Depends(get_ai_services)):
    return _session_payload(await _get_session(session_id, services))


@router.post("/sessions/{session_id}/messages", response_model=MessageResponse)
async def post_message(
    session_id: str,
    request: MessageRequest,
    services: dict = Depends(get_ai_services),
):
    session = await _get_session(session_id, services)
    _ensure_open(session)
    reply = await handle_user_message(
        AgentRuntimeConfig.from_services(services),
        session,
        request.content,
    )
    return {"reply": reply, "session": _session_payload(session)}


@router.patch("/sessions/{session_id}/fields", response_model=SessionResponse)
async def patch_field(
    session_id: str,
    request: FieldEditRequest,
    services: dict = Depends(get_ai_services),
):
    session = await _get_session(session_id, services)
    _ensure_open(session)
    try:
        await edit_field(
            AgentRuntimeConfig.from_services(services),
            session,
            request.field,
            request.value,
        )
    except SessionStateError as err:
        raise HTTPException(status_code=422, detail=str(err)) from err
    return _session_payload(session)


@router.post("/sessions/{session_id}/confirm", response_model=ConfirmResponse)
async def confirm_session(session_id: str, services: dict = Depends(get_ai_services)):
    session = await _get_session(session_id, services)
    _ensure_open(session)
    try:
        symptom, conversation = await confirm_and_save(
            AgentRuntimeConfig.from_services(services),
            session,
        )
    except SessionStateError as err:
        raise HTTPException(status_code=422, detail=str(err)) from err
    except PersistenceError as err:
        log_event(
            component="http",
            event="session_save_failed",
            level="ERROR",
            session_id=session.session_id,
            details={"error_type": type(err).__name__, "error": str(err)},
        )
        return {
            "success": False,
            "data": {},
            "error": build_error_payload_from_exception(err, SAVE_FAILED_MESSAGE),
        }

    await services["sessions"].remove(session.session_id)
    data: dict[str, Any] = {
        "symptom": symptom.model_dump(mode="json"),
        "conversation": conversation.model_dump(mode="json"),
    }
    return {"success": True, "data": data, "error": None}


@router.delete("/sessions/{session_id}", response_model=StatusResponse)
async def delete_session(session_id: str, services: dict = Depends(get_ai_services)):
    removed = await services["sessions"].remove(session_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Session not found")
    log_event(
        component="http",
        event="session_discarded",
        session_id=session_id,
        details={"metrics": pop_session_metrics(session_id)},
    )
    return {"status": "deleted"}
