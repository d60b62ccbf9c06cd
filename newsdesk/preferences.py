# newsdesk/preferences.py
from __future__ import annotations

from contextlib import aclosing
from datetime import datetime
from typing import AsyncIterator, Iterable, List, Optional

from .errors import Result, StorageError
from .logging_setup import get_logger
from .models import Category, Weekday
from .schema import DayPreference, UserConfiguration
from .store import DocumentStore

logger = get_logger("newsdesk.preferences")


class ConfigurationService:
    """
    Read-modify-write access to the single ``UserConfiguration`` row.

    A missing row reads as the default configuration; it is only written once the user
    changes something.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def get(self) -> UserConfiguration:
        row = self.store.load_config_row()
        if row is None:
            return UserConfiguration()
        try:
            return UserConfiguration.from_row(row)
        except (ValueError, KeyError) as e:
            logger.error("CONFIG_DECODE_FAILED", extra={"error": f"{type(e).__name__}: {e}"})
            return UserConfiguration()

    def save(self, config: UserConfiguration) -> Result:
        res = self.store.save_config_row(config.to_row())
        if res.ok:
            logger.info("CONFIG_SAVED")
        return res

    async def watch(self) -> AsyncIterator[UserConfiguration]:
        # the store notifies on any mutation; only emit when the configuration changed
        last: Optional[UserConfiguration] = None
        async with aclosing(self.store.watch_documents()) as changes:
            async for _ in changes:
                current = self.get()
                if current != last:
                    last = current
                    yield current

    # ---------- incremental helpers ----------

    def _update(self, what: str, mutate) -> Result:
        try:
            config = self.get()
            updated = mutate(config)
        except ValueError as e:
            return Result.failure(StorageError(f"Error al {what}: {e}"))
        return self.save(updated)

    def set_day_preference(self, day: Weekday, categories: Iterable[Category], exclusive_mode: bool = True) -> Result:
        pref = DayPreference(active_categories=list(categories), exclusive_mode=exclusive_mode)

        def mutate(c: UserConfiguration) -> UserConfiguration:
            weekly = dict(c.weekly_preferences)
            weekly[day] = pref
            return c.model_copy(update={"weekly_preferences": weekly})

        return self._update("configurar día", mutate)

    def exclude_category(self, category: Category) -> Result:
        def mutate(c: UserConfiguration) -> UserConfiguration:
            if category in c.excluded_categories:
                return c
            return c.model_copy(update={"excluded_categories": c.excluded_categories + [category]})

        return self._update("excluir categoría", mutate)

    def follow_keyword(self, keyword: str) -> Result:
        keyword = keyword.strip()

        def mutate(c: UserConfiguration) -> UserConfiguration:
            if not keyword:
                raise ValueError("keyword vacía")
            if keyword in c.followed_keywords:
                return c
            return c.model_copy(update={"followed_keywords": c.followed_keywords + [keyword]})

        return self._update("seguir keyword", mutate)

    def prefer_source(self, source: str) -> Result:
        source = source.strip()

        def mutate(c: UserConfiguration) -> UserConfiguration:
            if not source:
                raise ValueError("diario vacío")
            if source in c.preferred_sources:
                return c
            return c.model_copy(update={"preferred_sources": c.preferred_sources + [source]})

        return self._update("preferir diario", mutate)

    # ---------- derived ----------

    def active_categories_for_today(self, now: Optional[datetime] = None) -> List[Category]:
        config = self.get()
        today = config.weekly_preferences.get(Weekday.today(now))
        if today is not None and today.exclusive_mode:
            return list(today.active_categories)
        return [c for c in Category.all() if c not in config.excluded_categories]

    def is_excluded(self, category: Category) -> bool:
        return category in self.get().excluded_categories
