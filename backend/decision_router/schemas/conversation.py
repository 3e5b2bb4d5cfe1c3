"""Conversation Schemas: Pydantic models for the conversation API boundary.

Invariants:
    - NextRequest carries free text and/or selected options; the service joins
      selections into one answer string
    - ConversationResponse is either a completion (display cards, final result)
      or a question; error is set only for rejected answers
"""

from pydantic import BaseModel, Field, field_validator

from decision_router.core.domain_types import QuestionType, ResolutionMode


class StartRequest(BaseModel):
    """Conversation start. spec_id falls back to the configured default."""
    spec_id: str | None = Field(None, pattern=r"^[A-Za-z0-9_\-]+$")


class NextRequest(BaseModel):
    """One answer to the question the session is awaiting."""
    user_input: str | None = None
    selected_option_ids: list[str] | None = None
    selected_option_texts: list[str] | None = None

    @field_validator("selected_option_ids", "selected_option_texts")
    @classmethod
    def drop_blank_selections(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return [s.strip() for s in v if s and s.strip()]


class QuestionOption(BaseModel):
    id: str
    label: str
    value: str
    is_negative: bool = False


class QuestionModel(BaseModel):
    id: str
    source: str
    text: str
    type: QuestionType = QuestionType.TEXT
    allow_free_text: bool = True
    is_free_text: bool = True
    allow_multi_select: bool = False
    is_multi_select: bool = False
    retry_attempt: int | None = None
    options: list[QuestionOption] = Field(default_factory=list)
    validation_hints: list[str] = Field(default_factory=list)


class DisplayCardModel(BaseModel):
    title: str = ""
    subtitle: str = ""
    group_id: str = ""
    care_type_message: str = ""
    icon_url: str = ""
    body_text: list[str] = Field(default_factory=list)
    care_type_details: list[str] = Field(default_factory=list)
    rules: list[str] = Field(default_factory=list)


class FinalResultModel(BaseModel):
    outcome_id: str
    resolution_button_label: str = ""
    resolution_button_url: str = ""
    analytics_resolution_code: str = ""


class ErrorModel(BaseModel):
    code: str
    message: str


class ConversationResponse(BaseModel):
    session_id: str
    is_complete: bool = False
    texts: list[str] = Field(default_factory=list)
    question: QuestionModel | None = None
    display_cards: list[DisplayCardModel] = Field(default_factory=list)
    care_type_message: str | None = None
    final_result: FinalResultModel | None = None
    raw_response: str | None = None
    summary: str | None = None
    resolution_mode: ResolutionMode | None = None
    next_url: str | None = None
    error: ErrorModel | None = None
