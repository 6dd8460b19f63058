from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Any, List, Optional

from ..application.interview_session import Answer, Evaluation, InterviewSession, Question

class TextGenerator(ABC):
    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """Send a prompt to the generative backend and return its raw text."""
        pass

class QuestionProvider(ABC):
    @abstractmethod
    async def generate_questions(self, role: str) -> List[Question]:
        """Produce the ordered question set for a new interview."""
        pass

class Evaluator(ABC):
    @abstractmethod
    async def evaluate(self, session: InterviewSession) -> Evaluation:
        """Score a session's answers."""
        pass

class SessionStore(ABC):
    async def connect(self) -> None:
        """Prepare the backing medium. Raises StorageError when unavailable."""

    async def close(self) -> None:
        """Release any held resources."""

    @abstractmethod
    async def get(self, session_id: str) -> Optional[InterviewSession]:
        """Fetch a session, or None when it does not exist."""
        pass

    @abstractmethod
    async def create(self, session: InterviewSession) -> None:
        """Persist a new session."""
        pass

    @abstractmethod
    async def update_answers(self, session_id: str, answers: List[Answer]) -> None:
        """Overwrite the stored answer list."""
        pass

    @abstractmethod
    async def mark_completed(self,
                             session_id: str,
                             completed_at: datetime,
                             evaluation: Optional[Evaluation] = None) -> None:
        """Flip a session to completed and keep its evaluation."""
        pass

class SessionManager(ABC):
    @abstractmethod
    async def start_session(self, role: Optional[str] = None) -> Dict[str, Any]:
        """Create a new interview session and return its id, role and questions."""
        pass

    @abstractmethod
    async def submit_answer(self,
                            session_id: str,
                            payload: Dict[str, Any]) -> None:
        """Record an answer on an active session."""
        pass

    @abstractmethod
    async def complete_session(self, session_id: str) -> Evaluation:
        """Finish the session and return its evaluation."""
        pass

    @abstractmethod
    async def get_session(self, session_id: str) -> InterviewSession:
        """Retrieve the full session record."""
        pass
