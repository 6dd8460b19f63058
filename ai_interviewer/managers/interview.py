import uuid
from typing import Dict, Any, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from ..application.interview_session import Answer, Evaluation, InterviewSession, utcnow
from ..application.schemas import AnswerPayload
from ..core.exceptions import InvalidStateError, NotFoundError, ValidationError
from ..core.interfaces import Evaluator, QuestionProvider, SessionManager, SessionStore

logger = structlog.get_logger(__name__)


class InterviewSessionManager(SessionManager):
    """
    Drives a session through active -> completed.

    Every call reads the record from the store, works on that copy and writes
    the change back. There is no locking: concurrent writes to one session are
    last-write-wins.
    """
    def __init__(self,
                 store: SessionStore,
                 question_provider: QuestionProvider,
                 evaluator: Evaluator,
                 default_role: str = "SDE Intern"):
        self.store = store
        self.question_provider = question_provider
        self.evaluator = evaluator
        self.default_role = default_role

    async def _load(self, session_id: str) -> InterviewSession:
        session = await self.store.get(session_id)
        if session is None:
            raise NotFoundError(details={"session_id": session_id})
        return session

    async def start_session(self, role: Optional[str] = None) -> Dict[str, Any]:
        role = role or self.default_role
        session = InterviewSession(
            session_id=str(uuid.uuid4()),
            role=role,
            questions=await self.question_provider.generate_questions(role),
        )
        await self.store.create(session)
        logger.info("session_started", session_id=session.session_id, role=role)

        return {
            "sessionId": session.session_id,
            "role": session.role,
            "questions": [q.to_dict() for q in session.questions],
        }

    async def submit_answer(self,
                            session_id: str,
                            payload: Dict[str, Any]) -> None:
        try:
            data = AnswerPayload.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid answer payload",
                {"fields": [".".join(str(part) for part in err["loc"]) for err in e.errors()]}
            ) from e

        session = await self._load(session_id)
        if session.is_completed:
            raise InvalidStateError(details={"session_id": session_id})
        if session.question_by_id(data.questionId) is None:
            logger.warning("answer_for_unknown_question", session_id=session_id, question_id=data.questionId)

        replaced = session.answer_for(data.questionId) is not None
        session.record_answer(Answer(
            question_id=data.questionId,
            question_text=data.questionText,
            response_text=data.responseText,
            started_at=data.startedAt,
            answered_at=data.answeredAt,
        ))
        await self.store.update_answers(session_id, session.answers)
        logger.info(
            "answer_recorded",
            session_id=session_id,
            question_id=data.questionId,
            replaced=replaced,
            answered=len(session.answers),
        )

    async def complete_session(self, session_id: str) -> Evaluation:
        session = await self._load(session_id)
        if session.is_completed and session.evaluation is not None:
            logger.info("session_already_completed", session_id=session_id)
            return session.evaluation

        evaluation = await self.evaluator.evaluate(session)
        completed_at = session.completed_at or utcnow()
        await self.store.mark_completed(session_id, completed_at, evaluation)
        logger.info("session_completed", session_id=session_id, scores=evaluation.scores)
        return evaluation

    async def get_session(self, session_id: str) -> InterviewSession:
        return await self._load(session_id)
