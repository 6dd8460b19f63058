import json
import math
import re
from typing import Any, List, Optional, Tuple

import structlog

from ..application.interview_session import NO_ANSWER, SCORE_DIMENSIONS, Evaluation, InterviewSession
from ..core.exceptions import UpstreamProviderError
from ..core.interfaces import Evaluator, TextGenerator

logger = structlog.get_logger(__name__)

DEFAULT_SCORE = 5

EVALUATION_PROMPT = """You are evaluating a candidate for {role} position based on their interview responses.

Interview Q&A:
{qa_text}

Provide your evaluation in this EXACT JSON format (no additional text):
{{
  "scores": {{
    "technical": 7,
    "problemSolving": 6,
    "communication": 8
  }},
  "summary": "Brief 2-3 sentence overall assessment of the candidate",
  "feedback": {{
    "technical": "Brief technical feedback",
    "problemSolving": "Brief problem-solving feedback",
    "communication": "Brief communication feedback"
  }}
}}

Scoring Guidelines:
- Each score should be 0-10 (integers only)
- Technical: Knowledge of CS fundamentals, algorithms, data structures
- Problem-solving: Logical thinking, approach to problems, creativity
- Communication: Clarity, structure, explanation quality

Keep feedback concise (1-2 sentences each).
Return ONLY the JSON object."""

QAPair = Tuple[str, str]


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(low: int, high: int, value: int) -> int:
    return max(low, min(high, value))


def build_qa_pairs(session: InterviewSession) -> List[QAPair]:
    """Pair each question, in order, with its answer text or the no-answer sentinel."""
    pairs = []
    for question in session.questions:
        answer = session.answer_for(question.id)
        pairs.append((question.text, answer.response_text if answer and answer.response_text else NO_ANSWER))
    return pairs


def word_count(text: str) -> int:
    return len(re.split(r"\s+", text))


def local_evaluation(qa_pairs: List[QAPair]) -> Evaluation:
    """
    Deterministic scoring from answer completeness, length and punctuation.
    Used whenever the generative backend is unavailable or unusable.
    """
    question_count = len(qa_pairs)
    answers = [answer for _, answer in qa_pairs]
    total_answers = sum(1 for answer in answers if answer and answer != NO_ANSWER)

    if question_count:
        completion_rate = total_answers / question_count
        avg_length = sum(word_count(answer) for answer in answers) / question_count
    else:
        completion_rate = 0.0
        avg_length = 0.0
    has_structure = any("." in answer or "," in answer for answer in answers)

    technical = clamp(1, 10, round_half_up(3 + completion_rate * 5 + avg_length / 20))
    problem_solving = clamp(1, 10, round_half_up(2 + completion_rate * 6 + avg_length / 25))
    communication = clamp(1, 10, round_half_up(3 + completion_rate * 4 + (3 if has_structure else 1)))

    if avg_length < 15:
        depth = "brief"
    elif avg_length > 40:
        depth = "detailed"
    else:
        depth = "moderate"
    strength = "Strong" if technical >= 7 else "Developing"

    return Evaluation(
        scores={
            "technical": technical,
            "problemSolving": problem_solving,
            "communication": communication,
        },
        summary=(
            f"Candidate provided {total_answers}/{question_count} responses with {depth} explanations. "
            f"{strength} technical foundation observed."
        ),
        feedback={
            "technical": (
                "Provide more complete responses to technical questions."
                if total_answers < question_count * 0.5
                else "Demonstrate deeper CS fundamentals knowledge."
            ),
            "problemSolving": (
                "Elaborate on your problem-solving approach with more detail."
                if avg_length < 20
                else "Structure your solutions with clear steps."
            ),
            "communication": (
                "Good communication structure. Practice explaining complex concepts simply."
                if has_structure
                else "Use better sentence structure and organization in responses."
            ),
        },
    )


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return None if math.isnan(number) else number


def repair_score(value: Any) -> int:
    """Coerce any backend score into an int in [0, 10], defaulting invalid values to 5."""
    number = _as_number(value)
    if number is None:
        number = DEFAULT_SCORE
    if math.isinf(number):
        return 10 if number > 0 else 0
    return clamp(0, 10, round_half_up(number))


def extract_json_object(text: str) -> Any:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise UpstreamProviderError("No JSON found in response")
    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise UpstreamProviderError(f"Invalid JSON object: {e}") from e


def parse_evaluation(text: str) -> Evaluation:
    """
    Validate backend output into an Evaluation.

    Raises:
        UpstreamProviderError: when required keys are missing or malformed
    """
    raw = extract_json_object(text)
    if not isinstance(raw, dict):
        raise UpstreamProviderError("Invalid evaluation structure")
    scores, summary, feedback = raw.get("scores"), raw.get("summary"), raw.get("feedback")
    if not scores or not summary or not feedback:
        raise UpstreamProviderError("Invalid evaluation structure")
    if not isinstance(scores, dict) or not isinstance(feedback, dict) or not isinstance(summary, str):
        raise UpstreamProviderError("Invalid evaluation structure")

    return Evaluation(
        scores={key: repair_score(scores.get(key)) for key in SCORE_DIMENSIONS},
        summary=summary.strip(),
        feedback={key: str(feedback.get(key) or "") for key in SCORE_DIMENSIONS},
    )


class InterviewEvaluator(Evaluator):
    """
    Scores a session through the generative backend when available,
    otherwise through `local_evaluation`. Always returns a well-formed result.
    """
    def __init__(self, text_generator: Optional[TextGenerator] = None):
        self.text_generator = text_generator

    def build_prompt(self, role: str, qa_pairs: List[QAPair]) -> str:
        qa_text = "\n\n".join(
            f"Q{i}: {question}\nA{i}: {answer}"
            for i, (question, answer) in enumerate(qa_pairs, start=1)
        )
        return EVALUATION_PROMPT.format(role=role, qa_text=qa_text)

    async def evaluate(self, session: InterviewSession) -> Evaluation:
        qa_pairs = build_qa_pairs(session)
        if self.text_generator is None:
            return local_evaluation(qa_pairs)

        try:
            text = await self.text_generator.generate_text(self.build_prompt(session.role, qa_pairs))
            evaluation = parse_evaluation(text)
        except Exception as e:
            logger.warning("evaluation_fallback_used", session_id=session.session_id, reason=str(e))
            return local_evaluation(qa_pairs)

        logger.info("evaluation_generated", session_id=session.session_id, scores=evaluation.scores)
        return evaluation
