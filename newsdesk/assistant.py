# newsdesk/assistant.py
"""
The conversational use case: utterance in, grounded answer out.

Flow per call (nothing is kept between calls except what the caller passes back in
``conversation``):
  1. refuse early when the generation service has no key
  2. classify the utterance (keyword heuristics, no model call)
  3. pull candidate documents from the store for that intent
  4. apply configuration intents; short-circuit with "no information" when nothing matched
  5. build the bounded context and ask the model
  6. only after the model answered, mark the documents as consulted
"""
from __future__ import annotations

import time
import uuid
from typing import List, Optional, assert_never

from .context import ContextBuilder
from .errors import GenerationError, NewsdeskError, Result
from .intents import (
    ConfigureDay,
    DailySummary,
    Intent,
    RefreshSources,
    SavedNews,
    SearchCategory,
    SearchText,
    Unrecognized,
    classify,
)
from .llm import SYSTEM_PROMPT, GenerationService
from .logging_setup import get_logger
from .models import Document
from .preferences import ConfigurationService
from .schema import (
    AppliedConfiguration,
    AssistantResponse,
    ConfigurationType,
    ConversationContext,
    DocumentOut,
    ResponseType,
    SuggestedAction,
)
from .store import DocumentStore

logger = get_logger("newsdesk.assistant")

RETRIEVAL_LIMIT = 10
REFERENCED_LIMIT = 5

NOT_CONFIGURED_TEXT = (
    "Para usar el asistente necesitas configurar tu API key. "
    "Ve a Configuración y agrega tu clave."
)
INVALID_INPUT_TEXT = "No entendí la consulta. ¿Puedes repetirla?"
NO_RESULTS_TEXT = "No encontré información sobre eso. ¿Quieres que actualice las noticias?"
CONFIG_FAILED_TEXT = "No pude guardar la configuración del {day}. Inténtalo de nuevo."


class NewsAssistant:
    def __init__(
        self,
        store: DocumentStore,
        config: ConfigurationService,
        generation: GenerationService,
        builder: Optional[ContextBuilder] = None,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.store = store
        self.config = config
        self.generation = generation
        self.builder = builder or ContextBuilder(config)
        self.system_prompt = system_prompt

    def retrieve(self, intent: Intent) -> List[Document]:
        if isinstance(intent, DailySummary):
            return self.store.recent(24)[:RETRIEVAL_LIMIT]
        if isinstance(intent, SearchCategory):
            return self.store.search(intent.category.value, limit=RETRIEVAL_LIMIT)
        if isinstance(intent, SearchText):
            return self.store.search(intent.text, limit=RETRIEVAL_LIMIT)
        if isinstance(intent, (ConfigureDay, SavedNews, RefreshSources, Unrecognized)):
            # actions, not informational queries
            return []
        assert_never(intent)

    def _apply_configuration(self, intent: ConfigureDay) -> Result:
        return self.config.set_day_preference(intent.day, intent.categories, exclusive_mode=True)

    def ask(self, utterance: str, conversation: Optional[ConversationContext] = None) -> Result[AssistantResponse]:
        run_id = uuid.uuid4().hex[:8]

        def X(**fields):
            return {"run_id": run_id, **fields}

        if not self.generation.is_configured():
            logger.info("ASSISTANT_NOT_CONFIGURED", extra=X())
            return Result.success(AssistantResponse(
                text=NOT_CONFIGURED_TEXT,
                response_type=ResponseType.ERROR,
                suggested_action=SuggestedAction.CONFIGURE_PREFERENCES,
            ))

        if not (utterance or "").strip():
            return Result.success(AssistantResponse(text=INVALID_INPUT_TEXT, response_type=ResponseType.ERROR))

        conversation = conversation or ConversationContext()
        t0 = time.perf_counter()

        try:
            intent = classify(utterance)
            logger.info("ASSISTANT_INTENT", extra=X(intent=type(intent).__name__))

            documents = self.retrieve(intent)

            applied: Optional[AppliedConfiguration] = None
            if isinstance(intent, ConfigureDay):
                res = self._apply_configuration(intent)
                if not res.ok:
                    logger.warning("ASSISTANT_CONFIG_FAILED", extra=X(error=res.message))
                    return Result.success(AssistantResponse(
                        text=CONFIG_FAILED_TEXT.format(day=intent.day.value.lower()),
                        response_type=ResponseType.CONFIGURATION_FAILED,
                        suggested_action=SuggestedAction.CONFIGURE_PREFERENCES,
                    ))
                applied = AppliedConfiguration(
                    type=ConfigurationType.DAY_PREFERENCE,
                    parameters={
                        "day": intent.day.name,
                        "categories": ",".join(c.name for c in intent.categories),
                    },
                )
            elif not documents:
                logger.info("ASSISTANT_NO_RESULTS", extra=X(intent=type(intent).__name__))
                return Result.success(AssistantResponse(
                    text=NO_RESULTS_TEXT,
                    response_type=ResponseType.EMPTY_QUERY,
                    suggested_action=SuggestedAction.REFRESH_SOURCES,
                ))

            context = self.builder.build(documents, utterance, conversation)
            answer = self.generation.complete(self.system_prompt, context, utterance)

            for doc in documents:
                res = self.store.mark_consulted(doc.id)
                if not res.ok:
                    logger.warning("MARK_CONSULTED_FAILED", extra=X(doc_id=doc.id, error=res.message))

            logger.info(
                "ASSISTANT_ANSWERED",
                extra=X(documents=len(documents), elapsed_ms=round((time.perf_counter() - t0) * 1000)),
            )
            return Result.success(AssistantResponse(
                text=answer,
                referenced_documents=[DocumentOut.from_document(d) for d in documents[:REFERENCED_LIMIT]],
                response_type=ResponseType.CONFIGURATION_SUCCESS if applied else ResponseType.INFORMATIVE,
                applied_configuration=applied,
            ))

        except GenerationError as e:
            logger.warning("ASSISTANT_GENERATION_FAILED", extra=X(error=str(e)))
            return Result.failure(e, "Error al procesar consulta")
        except Exception as e:
            logger.exception("ASSISTANT_FATAL", extra=X(error=type(e).__name__))
            return Result.failure(NewsdeskError(f"Error al procesar consulta: {e}"))
