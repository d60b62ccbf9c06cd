# newsdesk/services.py
from dataclasses import dataclass
from typing import Iterable, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from .assistant import NewsAssistant
from .errors import GenerationError, IngestionError, Result
from .config import DB_URL, FEED_TIMEOUT_SECONDS, OPENAI_API_KEY, OPENAI_MODEL
from .llm import GenerationService
from .preferences import ConfigurationService
from .schema import FeedSource
from .sources import IngestionOrchestrator
from .store import DocumentStore


@dataclass
class Services:
    """Everything the routes and the scheduler share, built once per app."""
    store: DocumentStore
    config: ConfigurationService
    generation: GenerationService
    orchestrator: IngestionOrchestrator
    assistant: NewsAssistant

    @classmethod
    def build(
        cls,
        db_url: str = DB_URL,
        api_key: str = OPENAI_API_KEY,
        model: str = OPENAI_MODEL,
        sources: Optional[Iterable[FeedSource]] = None,
        generation: Optional[GenerationService] = None,
        orchestrator: Optional[IngestionOrchestrator] = None,
    ) -> "Services":
        store = DocumentStore(db_url)
        config = ConfigurationService(store)
        generation = generation or GenerationService(api_key=api_key, model=model)
        orchestrator = orchestrator or IngestionOrchestrator(sources, timeout=FEED_TIMEOUT_SECONDS)
        return cls(
            store=store,
            config=config,
            generation=generation,
            orchestrator=orchestrator,
            assistant=NewsAssistant(store, config, generation),
        )


def get_services(request: Request) -> Services:
    return request.app.state.services


def result_response(res: Result, **body):
    """Success -> ``{"ok": true, **body}``; failure -> ``{"ok": false, "error": message}``."""
    if res.ok:
        return {"ok": True, **body}
    if isinstance(res.error, LookupError):
        status = 404
    elif isinstance(res.error, (GenerationError, IngestionError)):
        status = 502
    else:
        status = 500
    return JSONResponse({"ok": False, "error": res.message}, status_code=status)
