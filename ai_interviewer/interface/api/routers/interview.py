from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request

from ....application.schemas import StartSessionRequest
from ....core.interfaces import SessionManager

router = APIRouter(prefix="/interview", tags=["interview"])


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


@router.post("/session/start")
async def start_session(body: Optional[StartSessionRequest] = None,
                        manager: SessionManager = Depends(get_session_manager)):
    """Create a session and return its id, role and question set."""
    return await manager.start_session(body.role if body else None)


@router.post("/session/{session_id}/answer")
async def submit_answer(session_id: str,
                        payload: Dict[str, Any] = Body(...),
                        manager: SessionManager = Depends(get_session_manager)):
    await manager.submit_answer(session_id, payload)
    return {"ok": True}


@router.get("/session/{session_id}")
async def get_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    session = await manager.get_session(session_id)
    return session.to_dict()


@router.post("/session/{session_id}/complete")
async def complete_session(session_id: str, manager: SessionManager = Depends(get_session_manager)):
    """Evaluate the collected answers and close the session."""
    evaluation = await manager.complete_session(session_id)
    return {"evaluation": evaluation.to_dict()}
