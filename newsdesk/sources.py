# newsdesk/sources.py
"""
RSS feed sources for the national outlets followed by the assistant.

  - RSSFeedAdapter: fetch one feed over HTTP (bounded timeout) and parse it with feedparser
  - IngestionOrchestrator: fan out over every active source concurrently and merge

A failing source never aborts the batch: its adapter logs and returns []. The batch as a
whole fails only when every source came back empty.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Iterable, List, Optional

import feedparser
import httpx

from .config import FEED_TIMEOUT_SECONDS
from .errors import IngestionError, Result
from .logging_setup import get_logger
from .models import Document, now_millis
from .normalizer import normalize_many
from .schema import FeedSource, RawFeedItem

logger = get_logger("newsdesk.sources")

USER_AGENT = "NewsdeskBot/1.0 (+https://example.com)"

DEFAULT_SOURCES: List[FeedSource] = [
    FeedSource(name="RPP Noticias", url="https://rpp.pe/feed"),
    FeedSource(name="El Comercio", url="https://elcomercio.pe/arcio/rss/"),
    FeedSource(name="Gestión", url="https://gestion.pe/feed/"),
    FeedSource(name="La República", url="https://larepublica.pe/rss"),
    FeedSource(name="Perú21", url="https://peru21.pe/feed/"),
]

# ---------- Parsing ----------

def _entry_value(entry, *keys: str) -> Optional[str]:
    for k in keys:
        v = entry.get(k) if hasattr(entry, "get") else getattr(entry, k, None)
        if v:
            return str(v)
    return None


def parse_feed(payload) -> List[RawFeedItem]:
    """feedparser result (or raw bytes/str) -> raw items. Missing fields stay None."""
    feed = payload if hasattr(payload, "entries") else feedparser.parse(payload)
    items: List[RawFeedItem] = []
    for e in feed.entries:
        items.append(RawFeedItem(
            title=_entry_value(e, "title"),
            description=_entry_value(e, "summary", "description"),
            link=_entry_value(e, "link"),
            publish_date=_entry_value(e, "published", "updated"),
        ))
    return items

# ---------- Adapter ----------

class RSSFeedAdapter:
    """Fetches one source. Never raises: errors and timeouts become an empty list."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = FEED_TIMEOUT_SECONDS):
        self.client = client
        self.timeout = timeout

    async def _download(self, source: FeedSource) -> bytes:
        r = await self.client.get(source.url, headers={"User-Agent": USER_AGENT}, timeout=self.timeout)
        r.raise_for_status()
        return r.content

    async def fetch(self, source: FeedSource) -> List[RawFeedItem]:
        try:
            body = await asyncio.wait_for(self._download(source), timeout=self.timeout)
            items = parse_feed(body)
        except asyncio.TimeoutError:
            logger.warning("SOURCE_TIMEOUT", extra={"source": source.name, "timeout_s": self.timeout})
            return []
        except Exception as e:
            logger.warning("SOURCE_FETCH_FAILED", extra={"source": source.name, "error": f"{type(e).__name__}: {e}"})
            return []
        logger.debug("SOURCE_FETCHED", extra={"source": source.name, "count": len(items)})
        return items

# ---------- Orchestrator ----------

class IngestionOrchestrator:
    """
    Runs every active source concurrently and returns the merged Documents.
    Does not touch the store; callers persist the result.
    """

    def __init__(
        self,
        sources: Optional[Iterable[FeedSource]] = None,
        timeout: float = FEED_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.sources = list(sources) if sources is not None else list(DEFAULT_SOURCES)
        self.timeout = timeout
        self.transport = transport  # tests plug in httpx.MockTransport

    async def _from_source(self, adapter: RSSFeedAdapter, source: FeedSource) -> List[Document]:
        try:
            raw = await adapter.fetch(source)
            return normalize_many(raw, source.name, now_ms=now_millis())
        except Exception as e:
            logger.warning("SOURCE_FAILED", extra={"source": source.name, "error": type(e).__name__})
            return []

    async def fetch_all(self) -> Result[List[Document]]:
        active = [s for s in self.sources if s.active]
        try:
            async with httpx.AsyncClient(follow_redirects=True, transport=self.transport) as client:
                adapter = RSSFeedAdapter(client, timeout=self.timeout)
                batches = await asyncio.gather(*(self._from_source(adapter, s) for s in active))
        except Exception as e:
            logger.exception("INGEST_FETCH_FATAL", extra={"error": type(e).__name__})
            return Result.failure(IngestionError(f"Error general al obtener noticias: {e}"))

        docs: List[Document] = [d for batch in batches for d in batch]
        per_source = Counter(d.source_name for d in docs)
        logger.info("FETCH_ALL_DONE", extra={"sources": len(active), "count": len(docs), "per_source": dict(per_source)})

        if not docs:
            return Result.failure(IngestionError("No se pudieron obtener noticias de ninguna fuente"))
        return Result.success(docs)
