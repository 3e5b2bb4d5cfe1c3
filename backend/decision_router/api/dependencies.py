"""API Dependencies: wiring of the conversation service and its collaborators.

Invariants:
    - One container per app, built in the lifespan and stored on app.state
    - Route handlers reach collaborators only through these dependency functions,
      so tests swap them with app.dependency_overrides

Design Decisions:
    - Plain dataclass container over a DI framework: the graph is five objects
"""

from dataclasses import dataclass

from fastapi import Request

from decision_router.config import Settings
from decision_router.core.protocols import LanguageModel
from decision_router.infrastructure.language_model import build_language_model
from decision_router.infrastructure.session_store import InMemorySessionStore
from decision_router.infrastructure.spec_loader import FileSystemSpecLoader
from decision_router.services.conversation_service import ConversationService
from decision_router.services.question_generator import QuestionGenerator
from decision_router.services.routing_evaluator import RoutingEvaluator
from decision_router.services.trait_parser import TraitParser


@dataclass
class ServiceContainer:
    settings: Settings
    llm: LanguageModel
    spec_loader: FileSystemSpecLoader
    session_store: InMemorySessionStore
    conversations: ConversationService


def build_container(settings: Settings, llm: LanguageModel | None = None) -> ServiceContainer:
    llm = llm or build_language_model(settings)
    spec_loader = FileSystemSpecLoader(settings.spec_directory)
    session_store = InMemorySessionStore()
    conversations = ConversationService(
        spec_loader=spec_loader,
        session_store=session_store,
        parser=TraitParser(llm),
        evaluator=RoutingEvaluator(
            llm,
            generate_summaries=settings.generate_summaries,
            summary_max_tokens=settings.llm_max_tokens,
            summary_temperature=settings.llm_temperature,
        ),
        question_generator=QuestionGenerator(llm),
        default_spec_id=settings.default_spec_id,
        max_input_size=settings.max_input_size,
    )
    return ServiceContainer(
        settings=settings, llm=llm, spec_loader=spec_loader,
        session_store=session_store, conversations=conversations,
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_conversation_service(request: Request) -> ConversationService:
    return get_container(request).conversations
