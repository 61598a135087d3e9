"""
Pydantic models for the Reverse LLM interaction core.

Defines question threads, chat messages, and the per-screen state records
owned by the conversation engine, the fetch simulator and the notification.

Last Grunted: 10/12/2026
"""

from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, model_validator


class MessageRole(str, Enum):
    """Author of a chat message."""

    ASSISTANT = "assistant"
    USER = "user"


class QuestionThread(BaseModel):
    """
    One inbound question plus its pre-authored follow-up script.

    messages[0] is the opening question shown as the thread title; the
    remaining entries are played back one per user answer.

    The sample resource spells the persona key ``llm``; both spellings are
    accepted.

    Example:
        >>> thread = QuestionThread(
        ...     id="t1",
        ...     persona="Claude",
        ...     messages=["Q1", "F1", "F2"],
        ... )
        >>> thread.title
        'Q1'
    """

    id: str = Field(..., min_length=1, description="Unique thread identifier")
    persona: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("persona", "llm"),
        description="Display name of the assistant that asked the question",
    )
    messages: tuple[str, ...] = Field(
        ...,
        min_length=1,
        description="Opening question followed by scripted follow-ups",
    )

    model_config = {"frozen": True, "extra": "forbid"}

    @property
    def title(self) -> str:
        return self.messages[0]

    @property
    def script_length(self) -> int:
        return len(self.messages)


class ThreadCatalog(BaseModel):
    """Validated collection of threads loaded from the sample resource."""

    threads: tuple[QuestionThread, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "ThreadCatalog":
        ids = [thread.id for thread in self.threads]
        if len(ids) != len(set(ids)):
            raise ValueError("threads must have unique ids")
        return self

    model_config = {"frozen": True}


class ChatMessage(BaseModel):
    """A single transcript entry. Never mutated after it is appended."""

    seq: int = Field(..., ge=0, description="Position within the conversation")
    role: MessageRole
    text: str

    model_config = {"frozen": True}


class ConversationState(BaseModel):
    """
    State of one open conversation.

    next_script_index points into thread.messages and starts at 1 because
    messages[0] seeds the transcript. conversation_id is the generation
    token of the engine that opened it. The transcript is append-only: the
    engine replaces the tuple with a longer one.
    """

    conversation_id: int
    thread: QuestionThread
    transcript: tuple[ChatMessage, ...] = Field(default_factory=tuple)
    next_script_index: int = Field(default=1, ge=1)
    answered: bool = False

    @property
    def script_remaining(self) -> bool:
        return self.next_script_index < len(self.thread.messages)


class FetchState(BaseModel):
    """Simulated fetch progress. progress is 0 whenever active is False."""

    active: bool = False
    progress: float = Field(default=0.0, ge=0.0, le=1.0)
    started_at: Optional[float] = None


class NotificationState(BaseModel):
    """Visibility of the "N questions added" acknowledgment."""

    visible: bool = False
    count: int = Field(default=0, ge=0)
