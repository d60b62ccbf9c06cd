# newsdesk/workflow.py
from typing import List, Optional
import asyncio
import time
import uuid
from collections import Counter

from .errors import NotConfiguredError, Result
from .llm import GenerationService
from .logging_setup import correlation_id_var, get_logger
from .models import Document, now_millis
from .schema import NewsStatistics
from .sources import IngestionOrchestrator
from .store import LAST_INGESTION_KEY, DocumentStore

logger = get_logger("newsdesk.workflow")


async def refresh_news(store: DocumentStore, orchestrator: Optional[IngestionOrchestrator] = None) -> Result:
    """
    Fetch every active source, then persist the whole batch in one upsert.
    Nothing is written until all sources have returned, so a cancelled refresh leaves
    the store untouched.
    """
    orchestrator = orchestrator or IngestionOrchestrator()
    run_id = uuid.uuid4().hex[:8]
    token = correlation_id_var.set(run_id)

    def X(**fields):
        return {"run_id": run_id, **fields}

    t0 = time.perf_counter()
    logger.info("INGEST_START", extra=X(step="start", sources=len(orchestrator.sources)))
    try:
        fetched = await orchestrator.fetch_all()
        if not fetched.ok:
            logger.warning("INGEST_FETCH_FAILED", extra=X(step="fetch", error=fetched.message))
            return fetched

        docs: List[Document] = fetched.value
        cat_dist = Counter(d.category.value for d in docs)
        logger.info("INGEST_FETCH_OK", extra=X(step="fetch", count=len(docs), category_dist=dict(cat_dist)))

        stored = store.upsert_many(docs)
        if not stored.ok:
            return stored

        stamped = store.set_setting(LAST_INGESTION_KEY, str(now_millis()))
        if not stamped.ok:
            logger.warning("INGEST_STAMP_FAILED", extra=X(step="stamp", error=stamped.message))
        logger.info(
            "INGEST_DONE",
            extra=X(step="end", stored=stored.value, elapsed_ms=round((time.perf_counter() - t0) * 1000)),
        )
        return stored
    finally:
        correlation_id_var.reset(token)


def run_refresh(store: DocumentStore, orchestrator: Optional[IngestionOrchestrator] = None) -> Result:
    """Blocking wrapper for the scheduler thread and sync routes."""
    return asyncio.run(refresh_news(store, orchestrator))


def sweep_old_news(store: DocumentStore, now_ms: Optional[int] = None) -> Result:
    res = store.sweep(now_ms=now_ms)
    if res.ok:
        logger.info("SWEEP_DONE", extra={"deleted": res.value})
    else:
        logger.warning("SWEEP_FAILED", extra={"error": res.message})
    return res

# ---------- small use cases ----------

def search_news(store: DocumentStore, query: str, limit: int = 20) -> List[Document]:
    if not (query or "").strip():
        return []
    return store.search(query, limit=limit)


def save_document(store: DocumentStore, doc_id: str) -> Result:
    doc = store.get(doc_id)
    if doc is None:
        return Result.failure(LookupError(f"Noticia {doc_id} no encontrada"))
    return store.save(doc)


def unsave_document(store: DocumentStore, doc_id: str) -> Result:
    return store.unsave(doc_id)


def summarize_document(store: DocumentStore, generation: GenerationService, doc_id: str) -> Result:
    if not generation.is_configured():
        return Result.failure(NotConfiguredError("El servicio de generación no está configurado"))
    doc = store.get(doc_id)
    if doc is None:
        return Result.failure(LookupError(f"Noticia {doc_id} no encontrada"))
    try:
        summary = generation.summarize(doc.full_content)
    except Exception as e:
        logger.warning("SUMMARY_FAILED", extra={"doc_id": doc_id, "error": type(e).__name__})
        return Result.failure(e, "Error al generar resumen")
    stored = store.set_summary(doc_id, summary)
    return stored.map(lambda _: summary)


def get_statistics(store: DocumentStore) -> NewsStatistics:
    return store.statistics()
