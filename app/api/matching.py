from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel

from app.models.items import DashboardState, NotificationAck
from app.scripts.logging_config import get_logger
from app.services.match_session import MatchSession, SessionRegistry, get_registry
from app.services.owner_notifier import notify_owner
from app.services.report_store import ReportStore, get_store

logger = get_logger("matching")

router = APIRouter(prefix="/matching", tags=["matching"])


class CreateSessionResponse(BaseModel):
    session_id: str


class SelectRequest(BaseModel):
    found_id: str


class DismissRequest(BaseModel):
    lost_id: str


def _session_or_404(session_id: str, registry: SessionRegistry) -> MatchSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="session_not_found")
    return session


@router.post("/session", response_model=CreateSessionResponse)
def create_session(registry: SessionRegistry = Depends(get_registry)):
    session = registry.create()
    logger.info("dashboard session created id=%s", session.session_id)
    return CreateSessionResponse(session_id=session.session_id)


@router.get("/{session_id}", response_model=DashboardState)
def get_state(session_id: str, registry: SessionRegistry = Depends(get_registry)):
    return _session_or_404(session_id, registry).state()


@router.post("/{session_id}/select", response_model=DashboardState)
def select_found_item(
    session_id: str,
    req: SelectRequest,
    background_tasks: BackgroundTasks,
    registry: SessionRegistry = Depends(get_registry),
    store: ReportStore = Depends(get_store),
):
    session = _session_or_404(session_id, registry)
    found = store.get_found(req.found_id)
    if found is None:
        raise HTTPException(status_code=404, detail="found_item_not_found")
    # state flips to loading now; the oracle round trip runs after the response
    ticket = session.begin(found)
    background_tasks.add_task(session.resolve, ticket, found, store.list_lost())
    return session.state()


@router.post("/{session_id}/dismiss", response_model=DashboardState)
def dismiss_match(session_id: str, req: DismissRequest, registry: SessionRegistry = Depends(get_registry)):
    session = _session_or_404(session_id, registry)
    session.dismiss(req.lost_id)
    return session.state()


@router.post("/{session_id}/notify/{lost_id}", response_model=NotificationAck)
def notify(
    session_id: str,
    lost_id: str,
    registry: SessionRegistry = Depends(get_registry),
    store: ReportStore = Depends(get_store),
):
    _session_or_404(session_id, registry)
    lost_item = store.get_lost(lost_id)
    if lost_item is None:
        raise HTTPException(status_code=404, detail="lost_item_not_found")
    return notify_owner(lost_item)
