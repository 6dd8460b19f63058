from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Dict, Any, Optional

NO_ANSWER = "No answer provided"
SCORE_DIMENSIONS = ("technical", "problemSolving", "communication")


class QuestionCategory(str, Enum):
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    PROBLEM_SOLVING = "problem-solving"
    COMMUNICATION = "communication"
    SYSTEM_DESIGN = "system-design"


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    category: QuestionCategory

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "text": self.text, "category": self.category.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Question":
        return cls(id=data["id"], text=data["text"], category=QuestionCategory(data["category"]))


@dataclass
class Answer:
    question_id: str
    question_text: str
    response_text: str
    started_at: Optional[datetime] = None
    answered_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "questionId": self.question_id,
            "questionText": self.question_text,
            "responseText": self.response_text,
            "startedAt": _isoformat(self.started_at),
            "answeredAt": _isoformat(self.answered_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Answer":
        return cls(
            question_id=data["questionId"],
            question_text=data["questionText"],
            response_text=data["responseText"],
            started_at=_parse_datetime(data.get("startedAt")),
            answered_at=_parse_datetime(data.get("answeredAt")),
        )


@dataclass
class Evaluation:
    scores: Dict[str, int]
    summary: str
    feedback: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scores": dict(self.scores),
            "summary": self.summary,
            "feedback": dict(self.feedback),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Evaluation":
        return cls(
            scores=dict(data["scores"]),
            summary=data["summary"],
            feedback=dict(data["feedback"]),
        )


@dataclass
class InterviewSession:
    session_id: str
    role: str
    questions: List[Question]
    answers: List[Answer] = field(default_factory=list)
    status: SessionStatus = SessionStatus.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    evaluation: Optional[Evaluation] = None

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def question_by_id(self, question_id: str) -> Optional[Question]:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def answer_for(self, question_id: str) -> Optional[Answer]:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None

    def record_answer(self, answer: Answer) -> None:
        """Store an answer, replacing any earlier answer to the same question."""
        for index, existing in enumerate(self.answers):
            if existing.question_id == answer.question_id:
                self.answers[index] = answer
                return
        self.answers.append(answer)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "role": self.role,
            "questions": [q.to_dict() for q in self.questions],
            "answers": [a.to_dict() for a in self.answers],
            "status": self.status.value,
            "createdAt": _isoformat(self.created_at),
            "completedAt": _isoformat(self.completed_at),
            "evaluation": self.evaluation.to_dict() if self.evaluation else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterviewSession":
        evaluation = data.get("evaluation")
        return cls(
            session_id=data["sessionId"],
            role=data["role"],
            questions=[Question.from_dict(q) for q in data["questions"]],
            answers=[Answer.from_dict(a) for a in data.get("answers", [])],
            status=SessionStatus(data.get("status", SessionStatus.ACTIVE.value)),
            created_at=_parse_datetime(data.get("createdAt")) or utcnow(),
            completed_at=_parse_datetime(data.get("completedAt")),
            evaluation=Evaluation.from_dict(evaluation) if evaluation else None,
        )
