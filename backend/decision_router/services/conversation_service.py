"""Conversation Service: drives one session through start and answer cycles.

Invariants:
    - Each next() call holds the session's lock for the whole cycle (parse,
      evaluate, question generation, save), so answers for one session are
      applied one at a time
    - A session is mutated once per accepted answer; a rejected answer only
      bumps the retry counter and validation history
    - Completed sessions accept no further answers
    - Generated clarifier traits are registered on the session, never the spec
"""

import asyncio
import logging
import uuid

from decision_router.core.errors import (
    ErrorContext, InputTooLargeError, SessionNotFoundError, SessionStateError,
)
from decision_router.core.protocols import SpecSource
from decision_router.core.question_presentation import option_id
from decision_router.core.results import EvaluationResult
from decision_router.core.session_state import ConversationSession
from decision_router.core.spec_model import DecisionSpec, TraitDefinition
from decision_router.core.trait_values import describe
from decision_router.infrastructure.session_store import InMemorySessionStore
from decision_router.schemas.conversation import ConversationResponse
from decision_router.services.question_generator import QuestionGenerator
from decision_router.services.response_mapper import (
    map_completion, map_invalid_answer, map_question,
)
from decision_router.services.routing_evaluator import RoutingEvaluator
from decision_router.services.trait_parser import TraitParser

logger = logging.getLogger(__name__)

SESSION_ID_LENGTH = 12


def new_session_id() -> str:
    return uuid.uuid4().hex[:SESSION_ID_LENGTH]


def compose_answer(
    trait: TraitDefinition,
    user_input: str | None,
    selected_option_ids: list[str] | None = None,
    selected_option_texts: list[str] | None = None,
) -> str:
    """Free text wins; otherwise selected options are joined into one answer."""
    if user_input and user_input.strip():
        return user_input
    labels_by_id = {option_id(label): label for label in trait.options}
    labels = [labels_by_id.get(i, i) for i in selected_option_ids or []]
    labels += list(selected_option_texts or [])
    return ", ".join(dict.fromkeys(labels))


class ConversationService:
    def __init__(
        self,
        spec_loader: SpecSource,
        session_store: InMemorySessionStore,
        parser: TraitParser,
        evaluator: RoutingEvaluator,
        question_generator: QuestionGenerator,
        default_spec_id: str,
        max_input_size: int = 2048,
    ):
        self.spec_loader = spec_loader
        self.session_store = session_store
        self.parser = parser
        self.evaluator = evaluator
        self.question_generator = question_generator
        self.default_spec_id = default_spec_id
        self.max_input_size = max_input_size

    async def start(
        self,
        spec_id: str | None = None,
        *,
        base_url: str = "",
        cancel: asyncio.Event | None = None,
    ) -> ConversationResponse:
        spec = await self.spec_loader.load_active_spec(spec_id or self.default_spec_id)
        session = ConversationSession(
            session_id=new_session_id(), spec_id=spec.spec_id, version=spec.version,
        )
        logger.info(
            f"Starting session for spec {spec.spec_id} v{spec.version}",
            extra={"session_id": session.session_id, "spec_id": spec.spec_id},
        )

        # Not yet saved, so no other request can reach this session
        evaluation = await self.evaluator.evaluate(spec, session.known_traits, cancel)
        response = await self._respond(spec, session, evaluation, base_url, cancel)
        await self.session_store.save(session)
        return response

    async def next(
        self,
        session_id: str,
        user_input: str | None,
        *,
        selected_option_ids: list[str] | None = None,
        selected_option_texts: list[str] | None = None,
        base_url: str = "",
        cancel: asyncio.Event | None = None,
    ) -> ConversationResponse:
        ctx = ErrorContext(session_id=session_id)
        if user_input and len(user_input) > self.max_input_size:
            logger.warning("Input too large", extra={"session_id": session_id})
            raise InputTooLargeError(self.max_input_size, ctx)

        if not await self.session_store.exists(session_id):
            raise SessionNotFoundError(session_id)

        async with self.session_store.lock(session_id):
            session = await self.session_store.get(session_id)
            if session.is_complete:
                raise SessionStateError("Session is already complete", ctx)
            if not session.awaiting_trait_key:
                raise SessionStateError("Session has no question awaiting an answer", ctx)

            spec = await self.spec_loader.load_active_spec(session.spec_id)
            trait = session.resolve_trait(spec, session.awaiting_trait_key)
            if trait is None:
                ctx.trait_key = session.awaiting_trait_key
                raise SessionStateError(
                    f"Awaiting trait '{session.awaiting_trait_key}' is not defined", ctx,
                )

            answer = compose_answer(
                trait, user_input, selected_option_ids, selected_option_texts,
            )
            if len(answer) > self.max_input_size:
                raise InputTooLargeError(self.max_input_size, ctx)

            parsed = await self.parser.parse_for_trait(answer, trait, session, cancel=cancel)
            if not parsed.is_valid:
                session.record_failure(trait.key, parsed.error_reason)
                generated = await self.question_generator.generate_with_options(
                    spec, trait, session.retry_attempt, cancel,
                )
                response = map_invalid_answer(
                    spec, session, trait, parsed.error_reason, generated, base_url,
                )
                await self.session_store.save(session)
                return response

            session.accept_answer(trait.key, parsed.value)
            logger.info(
                f"Stored trait {trait.key} = {describe(parsed.value)}",
                extra={"session_id": session_id, "trait_key": trait.key},
            )

            evaluation = await self.evaluator.evaluate(spec, session.known_traits, cancel)
            response = await self._respond(spec, session, evaluation, base_url, cancel)
            await self.session_store.save(session)
            return response

    async def _respond(
        self,
        spec: DecisionSpec,
        session: ConversationSession,
        evaluation: EvaluationResult,
        base_url: str,
        cancel: asyncio.Event | None,
    ) -> ConversationResponse:
        """Apply the evaluation to the session and map the response."""
        if evaluation.is_complete:
            session.is_complete = True
            session.awaiting_trait_key = None
            session.outcome_id = evaluation.outcome.outcome_id
            session.touch()
            return map_completion(session, evaluation)

        trait = evaluation.next_trait
        if trait.ephemeral:
            session.register_clarifier(trait)
        session.awaiting_trait_key = trait.key
        session.touch()

        generated = await self.question_generator.generate_with_options(
            spec, trait, 0, cancel,
        )
        return map_question(spec, session, evaluation, generated, base_url)
