"""
Progress events streamed to clients while a mystery is generated or re-validated.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(input=self.input + other.input, output=self.output + other.output)

    @property
    def total(self) -> int:
        return self.input + self.output


class GenerationEventType(str, Enum):
    START = "start"
    AGENT_START = "agent_start"
    AGENT_PROGRESS = "agent_progress"
    AGENT_COMPLETE = "agent_complete"
    AGENT_ERROR = "agent_error"
    VALIDATION_START = "validation_start"
    VALIDATION_COMPLETE = "validation_complete"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_EVENTS = (GenerationEventType.COMPLETE, GenerationEventType.ERROR)


class GenerationEvent(BaseModel):
    """One entry of the ordered pipeline event stream."""
    type: GenerationEventType
    agent: Optional[str] = None
    message: str = ""
    progress: float = Field(default=0, ge=0, le=100)
    data: Optional[Dict[str, Any]] = None
    tokens_used: Optional[TokenUsage] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENTS

    def to_sse(self) -> str:
        """Server-sent-events frame for this event."""
        return f"event: generation\ndata: {self.model_dump_json(exclude_none=True)}\n\n"
