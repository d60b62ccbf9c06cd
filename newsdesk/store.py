"""
store.py
========
This module is the *database gateway* for the app.

It owns the single SQLModel engine and exposes everything the rest of the code needs
from the database:
1) Two document collections: ``daily_news`` (kept 24h) and ``saved_news`` (kept until
   the user removes it), plus the configuration row and a small key-value table.
2) Point queries, free-text search, counts and statistics.
3) Mutations (upsert, consult, summary, save/unsave, retention sweep). Each one runs in
   its own transaction under a store-wide write lock and returns a ``Result`` instead
   of raising.
4) Watch streams: async generators that yield a fresh snapshot after every mutation.
"""

from __future__ import annotations

import asyncio
import threading
from collections import Counter
from typing import AsyncIterator, Callable, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, func, select

from .config import DB_URL, RETENTION_HOURS
from .errors import Result, StorageError
from .logging_setup import get_logger
from .models import HOUR_MS, AppSetting, Category, Document, SavedDocument, UserConfigRow, now_millis
from .schema import NewsStatistics

logger = get_logger("newsdesk.store")

LAST_INGESTION_KEY = "last_ingestion_at"
FIRST_RUN_KEY = "first_run"
VOICE_MODE_KEY = "voice_mode"
VOICE_RATE_KEY = "voice_rate"
VOICE_RATE_MIN, VOICE_RATE_MAX = 0.5, 2.0
API_KEY_KEY = "api_key"


def make_engine(db_url: str = DB_URL):
    # SQLite connections are shared across the API threadpool and the scheduler thread.
    kwargs = {}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(db_url, echo=False, **kwargs)


class _Watcher:
    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.loop = loop
        self.changed = asyncio.Event()

    def poke(self) -> None:
        self.loop.call_soon_threadsafe(self.changed.set)


class DocumentStore:
    def __init__(self, db_url: str = DB_URL, engine=None):
        self.engine = engine if engine is not None else make_engine(db_url)
        self._write_lock = threading.RLock()
        self._watchers: List[_Watcher] = []

    def init_db(self) -> None:
        """Create missing tables. Safe to call on every startup."""
        from . import models  # noqa: F401  (register tables with SQLModel)

        SQLModel.metadata.create_all(self.engine)

    def session(self) -> Session:
        # expire_on_commit=False so returned rows stay readable after the session closes
        return Session(self.engine, expire_on_commit=False)

    # ---------- internals ----------

    def _write(self, op: str, fn: Callable[[Session], object], message: str) -> Result:
        with self._write_lock:
            try:
                with self.session() as s:
                    value = fn(s)
                    s.commit()
            except SQLAlchemyError as e:
                logger.exception("STORE_WRITE_FAILED", extra={"op": op, "error": type(e).__name__})
                return Result.failure(StorageError(f"{message}: {e}"))
        self._notify()
        return Result.success(value)

    def _notify(self) -> None:
        for w in list(self._watchers):
            try:
                w.poke()
            except RuntimeError:
                # the subscriber's loop is gone
                self._discard(w)

    def _discard(self, watcher: _Watcher) -> None:
        with self._write_lock:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

    # ---------- daily documents: reads ----------

    def list_documents(self, category: Optional[Category] = None) -> List[Document]:
        with self.session() as s:
            q = select(Document)
            if category is not None:
                q = q.where(Document.category == category)
            return list(s.exec(q.order_by(Document.published_at.desc())).all())

    def get(self, doc_id: str) -> Optional[Document]:
        with self.session() as s:
            return s.get(Document, doc_id)

    def recent(self, hours: int = 24, now_ms: Optional[int] = None) -> List[Document]:
        now_ms = now_ms if now_ms is not None else now_millis()
        cutoff = now_ms - hours * HOUR_MS
        with self.session() as s:
            q = select(Document).where(Document.published_at >= cutoff).order_by(Document.published_at.desc())
            return list(s.exec(q).all())

    def search(self, text: str, limit: int = 20) -> List[Document]:
        """Case-insensitive substring match over title, content and keywords, newest first."""
        needle = (text or "").lower()
        out: List[Document] = []
        for doc in self.list_documents():
            if needle in doc.search_blob():
                out.append(doc)
                if len(out) >= limit:
                    break
        return out

    def search_by_keyword(self, keyword: str) -> List[Document]:
        return self.search(keyword)

    def count(self, category: Optional[Category] = None) -> int:
        with self.session() as s:
            q = select(func.count()).select_from(Document)
            if category is not None:
                q = q.where(Document.category == category)
            return s.exec(q).one()

    def count_by_category(self, category: Category) -> int:
        return self.count(category)

    # ---------- daily documents: writes ----------

    def upsert(self, doc: Document) -> Result:
        return self.upsert_many([doc])

    def upsert_many(self, docs: Iterable[Document]) -> Result:
        # collapse same-id items inside one batch; the later one wins
        docs = list({d.id: d for d in docs}.values())

        def op(s: Session) -> int:
            for d in docs:
                s.merge(d)  # replace-on-conflict keyed by id
            return len(docs)

        return self._write("upsert", op, "Error al insertar noticias")

    def _update(self, op_name: str, doc_id: str, mutate: Callable[[Document], None], message: str) -> Result:
        def op(s: Session) -> None:
            doc = s.get(Document, doc_id)
            if doc is None:
                return None
            mutate(doc)
            s.add(doc)
            return None

        return self._write(op_name, op, message)

    def mark_consulted(self, doc_id: str) -> Result:
        def mutate(d: Document) -> None:
            d.was_consulted = True
            d.consult_count = (d.consult_count or 0) + 1

        return self._update("mark_consulted", doc_id, mutate, "Error al marcar noticia")

    def set_summary(self, doc_id: str, summary: str) -> Result:
        def mutate(d: Document) -> None:
            d.executive_summary = summary

        return self._update("set_summary", doc_id, mutate, "Error al actualizar resumen")

    def set_saved(self, doc_id: str, saved: bool) -> Result:
        def mutate(d: Document) -> None:
            d.is_saved = saved

        return self._update("set_saved", doc_id, mutate, "Error al actualizar guardado")

    def sweep(self, now_ms: Optional[int] = None, hours: int = RETENTION_HOURS) -> Result:
        """Delete unsaved daily documents published before now - hours. Returns the count."""
        now_ms = now_ms if now_ms is not None else now_millis()
        cutoff = now_ms - hours * HOUR_MS

        def op(s: Session) -> int:
            stale = s.exec(
                select(Document).where(Document.published_at < cutoff, Document.is_saved == False)  # noqa: E712
            ).all()
            for d in stale:
                s.delete(d)
            return len(stale)

        return self._write("sweep", op, "Error al limpiar noticias")

    # ---------- saved collection ----------

    def save(self, doc: Document) -> Result:
        saved = SavedDocument.from_document(doc)

        def op(s: Session) -> None:
            s.merge(saved)
            current = s.get(Document, doc.id)
            if current is not None:
                current.is_saved = True
                s.add(current)

        return self._write("save", op, "Error al guardar noticia")

    def unsave(self, doc_id: str) -> Result:
        def op(s: Session) -> None:
            saved = s.get(SavedDocument, doc_id)
            if saved is not None:
                s.delete(saved)
            current = s.get(Document, doc_id)
            if current is not None:
                current.is_saved = False
                s.add(current)

        return self._write("unsave", op, "Error al eliminar guardada")

    def list_saved(self) -> List[Document]:
        with self.session() as s:
            rows = s.exec(select(SavedDocument).order_by(SavedDocument.saved_at.desc())).all()
            return [r.to_document() for r in rows]

    def get_saved(self, doc_id: str) -> Optional[Document]:
        with self.session() as s:
            row = s.get(SavedDocument, doc_id)
            return row.to_document() if row else None

    def count_saved(self) -> int:
        with self.session() as s:
            return s.exec(select(func.count()).select_from(SavedDocument)).one()

    # ---------- configuration & settings ----------

    def load_config_row(self, config_id: str = "default") -> Optional[UserConfigRow]:
        with self.session() as s:
            return s.get(UserConfigRow, config_id)

    def save_config_row(self, row: UserConfigRow) -> Result:
        def op(s: Session) -> None:
            s.merge(row)

        return self._write("save_config", op, "Error al guardar configuración")

    def get_setting(self, key: str, default: str = "") -> str:
        with self.session() as s:
            row = s.get(AppSetting, key)
            return row.value if row else default

    def set_setting(self, key: str, value: str) -> Result:
        def op(s: Session) -> None:
            s.merge(AppSetting(key=key, value=value))

        return self._write("set_setting", op, "Error al guardar preferencia")

    def is_first_run(self) -> bool:
        return self.get_setting(FIRST_RUN_KEY, "true") == "true"

    def complete_first_run(self) -> Result:
        return self.set_setting(FIRST_RUN_KEY, "false")

    def voice_mode(self) -> bool:
        return self.get_setting(VOICE_MODE_KEY, "false") == "true"

    def set_voice_mode(self, enabled: bool) -> Result:
        return self.set_setting(VOICE_MODE_KEY, "true" if enabled else "false")

    def voice_rate(self) -> float:
        try:
            return float(self.get_setting(VOICE_RATE_KEY, "1.0"))
        except ValueError:
            return 1.0

    def set_voice_rate(self, rate: float) -> Result:
        rate = min(VOICE_RATE_MAX, max(VOICE_RATE_MIN, float(rate)))
        return self.set_setting(VOICE_RATE_KEY, str(rate)).map(lambda _: rate)

    # ---------- statistics ----------

    def statistics(self, now_ms: Optional[int] = None) -> NewsStatistics:
        try:
            docs = self.list_documents()
            now_ms = now_ms if now_ms is not None else now_millis()
            return NewsStatistics(
                total=len(docs),
                recent=sum(1 for d in docs if d.is_recent(now_ms)),
                saved=self.count_saved(),
                by_category=dict(Counter(d.category.value for d in docs)),
                last_ingestion_at=int(self.get_setting(LAST_INGESTION_KEY, "0") or 0),
            )
        except SQLAlchemyError as e:
            logger.exception("STATISTICS_FAILED", extra={"error": type(e).__name__})
            return NewsStatistics()

    # ---------- watch streams ----------

    async def _watch(self, snapshot: Callable[[], List[Document]]) -> AsyncIterator[List[Document]]:
        watcher = _Watcher(asyncio.get_running_loop())
        with self._write_lock:
            self._watchers.append(watcher)
        try:
            while True:
                watcher.changed.clear()
                yield snapshot()
                await watcher.changed.wait()
        finally:
            self._discard(watcher)

    def watch_documents(self, category: Optional[Category] = None) -> AsyncIterator[List[Document]]:
        return self._watch(lambda: self.list_documents(category))

    def watch_saved(self) -> AsyncIterator[List[Document]]:
        return self._watch(self.list_saved)
