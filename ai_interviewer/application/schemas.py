import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# date and time are both required; epoch numbers and bare dates are not timestamps here
ISO_DATETIME = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")


class AnswerPayload(BaseModel):
    """Body of an answer submission, as sent by the client."""
    model_config = ConfigDict(extra="ignore")

    questionId: str
    questionText: str
    responseText: str = Field(min_length=1)
    startedAt: Optional[datetime] = None
    answeredAt: Optional[datetime] = None

    @field_validator("startedAt", "answeredAt", mode="before")
    @classmethod
    def _require_iso_string(cls, value: Any) -> Any:
        if value is None:
            return value
        if not isinstance(value, str) or not ISO_DATETIME.match(value):
            raise ValueError("must be an ISO-8601 date-time string")
        return value


class StartSessionRequest(BaseModel):
    role: Optional[str] = Field(default=None, min_length=1, max_length=255)
