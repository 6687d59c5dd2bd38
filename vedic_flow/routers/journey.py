"""Journey endpoints for the Vedic Flow FastAPI backend."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from ..errors import InvalidTransition
from ..journey import JourneySession
from ..memory import SessionMemory
from ..schemas import (
    ExportResponse,
    IntakeReply,
    PeriodRequest,
    SessionSnapshot,
    StageDefinition,
    TurnRequest,
)
from ..stages import list_stage_definitions


router = APIRouter(prefix="/journey", tags=["journey"])


def get_memory(request: Request) -> SessionMemory:
    return request.app.state.session_memory


def get_session(session_id: str, memory: SessionMemory = Depends(get_memory)) -> JourneySession:
    session = memory.get(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No journey found for session '{session_id}'.")
    return session


def _conflict(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


@router.get("/health")
async def healthcheck() -> dict[str, str]:
    """Simple health check endpoint."""

    return {"status": "ok"}


@router.get("/stages", response_model=list[StageDefinition])
async def list_stages() -> list[StageDefinition]:
    """Expose stage metadata to the UI."""

    return list_stage_definitions()


@router.post("/sessions", response_model=SessionSnapshot, status_code=status.HTTP_201_CREATED)
async def create_session(request: Request, memory: SessionMemory = Depends(get_memory)) -> SessionSnapshot:
    """Open a session and return the first intake prompt."""

    session = memory.create(provider=request.app.state.provider, settings=request.app.state.settings)
    return session.snapshot()


@router.get("/sessions/{session_id}", response_model=SessionSnapshot)
async def fetch_session(session: JourneySession = Depends(get_session)) -> SessionSnapshot:
    return session.snapshot()


@router.post("/sessions/{session_id}/turns", response_model=IntakeReply)
async def submit_turn(payload: TurnRequest, session: JourneySession = Depends(get_session)) -> IntakeReply:
    """Feed one user turn to the intake."""

    return session.submit(payload.text)


@router.post("/sessions/{session_id}/advance", response_model=SessionSnapshot)
async def advance_stage(session: JourneySession = Depends(get_session)) -> SessionSnapshot:
    """Move to the next stage once the current artifact is ready."""

    try:
        moved = session.advance()
    except InvalidTransition as exc:
        raise _conflict(str(exc)) from exc
    if moved is None:
        raise _conflict("The active stage cannot advance yet.")
    return session.snapshot()


@router.post("/sessions/{session_id}/retry", response_model=SessionSnapshot)
async def retry_stage(session: JourneySession = Depends(get_session)) -> SessionSnapshot:
    """Re-issue a failed stage request."""

    try:
        accepted = session.retry()
    except InvalidTransition as exc:
        raise _conflict(str(exc)) from exc
    if not accepted:
        raise _conflict("Only a failed stage can be retried.")
    return session.snapshot()


@router.post("/sessions/{session_id}/roadmap/period", response_model=SessionSnapshot)
async def select_period(payload: PeriodRequest, session: JourneySession = Depends(get_session)) -> SessionSnapshot:
    """Switch the roadmap horizon."""

    try:
        accepted = session.select_period(payload.period)
    except InvalidTransition as exc:
        raise _conflict(str(exc)) from exc
    if not accepted:
        raise _conflict("The roadmap period can only change during the roadmap stage.")
    return session.snapshot()


@router.get("/sessions/{session_id}/export", response_model=ExportResponse)
async def export_session(session: JourneySession = Depends(get_session)) -> ExportResponse:
    """Return all generated artifacts as one markdown document."""

    combined = session.export_markdown()
    if not combined:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No artifacts generated yet.")
    return ExportResponse(session_id=session.session_id, combined_markdown=combined)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def discard_session(session_id: str, memory: SessionMemory = Depends(get_memory)) -> None:
    if not memory.discard(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"No journey found for session '{session_id}'.")
