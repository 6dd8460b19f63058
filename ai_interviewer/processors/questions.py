import json
import random
import time
from typing import Any, List, Optional

import structlog

from ..application.interview_session import Question, QuestionCategory
from ..core.exceptions import UpstreamProviderError
from ..core.interfaces import QuestionProvider, TextGenerator

logger = structlog.get_logger(__name__)

QUESTION_COUNT = 6
MIN_QUESTION_LENGTH = 10

GREETING_PREFIX = "Hi, I'm your AI interviewer for the {role} role"
CANONICAL_GREETING = (
    GREETING_PREFIX + ". Please tell me about yourself, your background, "
    "and why you are interested in this position."
)

FALLBACK_QUESTIONS = (
    Question("q1", CANONICAL_GREETING.format(role="SDE Intern"), QuestionCategory.BEHAVIORAL),
    Question("q2", "Explain the time and space complexity of a HashMap and a Linked List.", QuestionCategory.TECHNICAL),
    Question("q3", "Given an array of integers, find two numbers that add up to a target.", QuestionCategory.PROBLEM_SOLVING),
    Question("q4", "Describe a time you faced a challenging bug and how you resolved it.", QuestionCategory.BEHAVIORAL),
    Question("q5", "What are the differences between processes and threads?", QuestionCategory.TECHNICAL),
    Question("q6", "How would you design a URL shortener at a high level?", QuestionCategory.SYSTEM_DESIGN),
)

QUESTION_PROMPT = """Generate exactly {count} unique interview questions for a {role} position. Use this random seed: {seed} and timestamp: {timestamp} to ensure variety.

IMPORTANT: The first question MUST start with "{greeting}." and should be an introduction question asking about the candidate's background and interest in the position.

Return ONLY a valid JSON array in this exact format:
[
  {{"id": "q1", "text": "{greeting}. [introduction question here]", "category": "behavioral"}},
  {{"id": "q2", "text": "question text here", "category": "technical"}},
  {{"id": "q3", "text": "question text here", "category": "problem-solving"}},
  {{"id": "q4", "text": "question text here", "category": "communication"}},
  {{"id": "q5", "text": "question text here", "category": "system-design"}},
  {{"id": "q6", "text": "question text here", "category": "technical"}}
]

Requirements:
- Generate completely new and varied questions each time
- Categories must be one of: {categories}
- Cover as many different categories as possible
- Questions should be concise, role-appropriate, and different from common interview questions
- Mix different difficulty levels and topics
- The first question must always be an introduction with the specified greeting

Do not include any explanation or additional text - only the JSON array."""


def greeting_for(role: str) -> str:
    return CANONICAL_GREETING.format(role=role)


def fallback_questions(role: str) -> List[Question]:
    """Static question set with the opening question addressed to `role`."""
    questions = list(FALLBACK_QUESTIONS)
    questions[0] = Question(questions[0].id, greeting_for(role), QuestionCategory.BEHAVIORAL)
    return questions


def extract_json_array(text: str) -> Any:
    start = text.find("[")
    end = text.rfind("]")
    if start == -1 or end <= start:
        raise UpstreamProviderError("No JSON array found")
    try:
        return json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise UpstreamProviderError(f"Invalid JSON array: {e}") from e


def parse_questions(text: str, role: str) -> List[Question]:
    """
    Validate backend output into a question list.

    Raises:
        UpstreamProviderError: when the output is not a usable question set
    """
    raw = extract_json_array(text)
    if not isinstance(raw, list) or len(raw) != QUESTION_COUNT:
        raise UpstreamProviderError("Invalid questions format")

    questions = []
    seen_ids = set()
    for item in raw:
        if not isinstance(item, dict):
            raise UpstreamProviderError("Invalid question structure")
        question_id, question_text, category = item.get("id"), item.get("text"), item.get("category")
        if not question_id or not category:
            raise UpstreamProviderError("Invalid question structure")
        if not isinstance(question_text, str) or len(question_text) <= MIN_QUESTION_LENGTH:
            raise UpstreamProviderError("Invalid question structure")
        try:
            category = QuestionCategory(str(category).strip().lower())
        except ValueError as e:
            raise UpstreamProviderError(f"Unknown question category: {category}") from e
        question_id = str(question_id)
        if question_id in seen_ids:
            raise UpstreamProviderError(f"Duplicate question id: {question_id}")
        seen_ids.add(question_id)
        questions.append(Question(question_id, question_text, category))

    if not questions[0].text.startswith(GREETING_PREFIX.format(role=role)):
        logger.info("question_greeting_corrected", role=role)
        questions[0] = Question(questions[0].id, greeting_for(role), QuestionCategory.BEHAVIORAL)
    return questions


class QuestionGenerator(QuestionProvider):
    """
    Builds the interview question set from the generative backend,
    falling back to a static list on any failure. Never raises.
    """
    def __init__(self, text_generator: Optional[TextGenerator] = None):
        self.text_generator = text_generator

    def build_prompt(self, role: str) -> str:
        return QUESTION_PROMPT.format(
            count=QUESTION_COUNT,
            role=role,
            seed=random.randint(0, 9999),
            timestamp=int(time.time() * 1000),
            greeting=GREETING_PREFIX.format(role=role),
            categories=", ".join(c.value for c in QuestionCategory),
        )

    async def generate_questions(self, role: str) -> List[Question]:
        if self.text_generator is None:
            return fallback_questions(role)

        try:
            text = await self.text_generator.generate_text(self.build_prompt(role))
            questions = parse_questions(text, role)
        except Exception as e:
            logger.warning("question_fallback_used", role=role, reason=str(e))
            return fallback_questions(role)

        logger.info("questions_generated", role=role, count=len(questions))
        return questions
