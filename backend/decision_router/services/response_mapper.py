"""Response Mapper: EvaluationResult + session -> ConversationResponse.

Invariants:
    - Completion responses carry display cards, care-type message, final result
      and the raw analytics resolution code
    - Question responses carry the presentation type decided from the
      session's validation history
    - Rejected answers carry error INVALID_INPUT and the rephrased question
"""

import logging

from decision_router.core.domain_types import QuestionType
from decision_router.core.question_presentation import decide_question_type
from decision_router.core.results import EvaluationResult
from decision_router.core.session_state import ConversationSession
from decision_router.core.spec_model import (
    DecisionSpec, DisplayCard, OutcomeDefinition, TraitDefinition,
)
from decision_router.schemas.conversation import (
    ConversationResponse, DisplayCardModel, ErrorModel, FinalResultModel,
    QuestionModel, QuestionOption,
)
from decision_router.services.question_generator import GeneratedQuestion

logger = logging.getLogger(__name__)

TEXT_COMPLETE = "Here's what I recommend:"
TEXT_FIRST_ASK = "Thanks! One quick question."
TEXT_RETRY = "Let me rephrase that."
TEXT_CLARIFY = "I need one more detail to make the best recommendation."

INVALID_INPUT = "INVALID_INPUT"

API_PREFIX = "/api/v1/conversations"


def conversation_url(base_url: str, session_id: str, action: str) -> str:
    return f"{base_url.rstrip('/')}{API_PREFIX}/{session_id}/{action}"


def map_display_card(card: DisplayCard) -> DisplayCardModel:
    return DisplayCardModel(
        title=card.title, subtitle=card.subtitle, group_id=card.group_id,
        care_type_message=card.care_type_message, icon_url=card.icon_url,
        body_text=list(card.body_text),
        care_type_details=list(card.care_type_details),
        rules=list(card.rules),
    )


def map_completion(
    session: ConversationSession, evaluation: EvaluationResult,
) -> ConversationResponse:
    outcome: OutcomeDefinition = evaluation.outcome
    logger.info(
        f"Mapped completion response for outcome {outcome.outcome_id}",
        extra={"session_id": session.session_id, "outcome_id": outcome.outcome_id},
    )
    return ConversationResponse(
        session_id=session.session_id,
        is_complete=True,
        texts=[TEXT_COMPLETE],
        display_cards=[map_display_card(c) for c in outcome.display_cards],
        care_type_message=outcome.care_type_message or None,
        final_result=FinalResultModel(
            outcome_id=outcome.outcome_id,
            resolution_button_label=outcome.final_result.resolution_button_label,
            resolution_button_url=outcome.final_result.resolution_button_url,
            analytics_resolution_code=outcome.final_result.analytics_resolution_code,
        ),
        raw_response=outcome.final_result.analytics_resolution_code or None,
        summary=evaluation.summary,
        resolution_mode=evaluation.resolution_mode,
    )


def build_question(
    spec: DecisionSpec,
    session: ConversationSession,
    trait: TraitDefinition,
    generated: GeneratedQuestion,
) -> QuestionModel:
    """Question payload; also records the chosen presentation on the session."""
    failures = session.failures_for(trait.key)
    question_type = decide_question_type(trait, failures)
    session.awaiting_question_type = question_type
    return QuestionModel(
        id=trait.key,
        source=spec.spec_id,
        text=generated.text,
        type=question_type,
        allow_free_text=True,
        is_free_text=question_type == QuestionType.TEXT,
        allow_multi_select=question_type == QuestionType.MULTI_SELECT,
        is_multi_select=question_type == QuestionType.MULTI_SELECT,
        retry_attempt=session.retry_attempt or None,
        options=[
            QuestionOption(id=o.id, label=o.label, value=o.label, is_negative=o.is_negative)
            for o in generated.options
        ],
        validation_hints=[f.error_reason for f in reversed(failures)],
    )


def map_question(
    spec: DecisionSpec,
    session: ConversationSession,
    evaluation: EvaluationResult,
    generated: GeneratedQuestion,
    base_url: str = "",
) -> ConversationResponse:
    trait = evaluation.next_trait
    if evaluation.requires_clarifier:
        texts = [TEXT_CLARIFY]
    elif session.retry_attempt > 0:
        texts = [TEXT_RETRY]
    else:
        texts = [TEXT_FIRST_ASK]

    return ConversationResponse(
        session_id=session.session_id,
        texts=texts,
        question=build_question(spec, session, trait, generated),
        resolution_mode=evaluation.resolution_mode,
        next_url=conversation_url(base_url, session.session_id, "next"),
    )


def map_invalid_answer(
    spec: DecisionSpec,
    session: ConversationSession,
    trait: TraitDefinition,
    error_reason: str,
    generated: GeneratedQuestion,
    base_url: str = "",
) -> ConversationResponse:
    return ConversationResponse(
        session_id=session.session_id,
        texts=[TEXT_RETRY],
        question=build_question(spec, session, trait, generated),
        next_url=conversation_url(base_url, session.session_id, "next"),
        error=ErrorModel(code=INVALID_INPUT, message=error_reason),
    )
