import copy
from datetime import datetime
from typing import Dict, List, Optional

from ..application.interview_session import Answer, Evaluation, InterviewSession, SessionStatus
from ..core.exceptions import StorageError
from ..core.interfaces import SessionStore


class MemorySessionStore(SessionStore):
    """
    Volatile session store backed by a dict.
    Empty at construction and lost on restart. Records are copied in and out,
    so callers never hold a reference to the stored object.
    """
    def __init__(self):
        self._sessions: Dict[str, InterviewSession] = {}

    def _require(self, session_id: str) -> InterviewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise StorageError(f"Session {session_id} is not stored", {"session_id": session_id})
        return session

    async def get(self, session_id: str) -> Optional[InterviewSession]:
        session = self._sessions.get(session_id)
        return copy.deepcopy(session) if session else None

    async def create(self, session: InterviewSession) -> None:
        if session.session_id in self._sessions:
            raise StorageError(f"Session {session.session_id} already exists", {"session_id": session.session_id})
        self._sessions[session.session_id] = copy.deepcopy(session)

    async def update_answers(self, session_id: str, answers: List[Answer]) -> None:
        self._require(session_id).answers = copy.deepcopy(answers)

    async def mark_completed(self,
                             session_id: str,
                             completed_at: datetime,
                             evaluation: Optional[Evaluation] = None) -> None:
        session = self._require(session_id)
        session.status = SessionStatus.COMPLETED
        session.completed_at = completed_at
        session.evaluation = copy.deepcopy(evaluation)

    def __len__(self) -> int:
        return len(self._sessions)
