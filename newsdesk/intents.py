# newsdesk/intents.py
"""
Keyword heuristics that turn a user utterance into an ``Intent`` without calling the model.

The cascade is ordered and the first rule that matches wins. Anything that falls through
becomes ``SearchText``; ``Unrecognized`` is only produced from a model label
(``from_model_label``), never by ``classify``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple, Union

from .models import Category, Weekday


@dataclass(frozen=True)
class DailySummary:
    pass


@dataclass(frozen=True)
class SearchCategory:
    category: Category


@dataclass(frozen=True)
class SearchText:
    text: str


@dataclass(frozen=True)
class ConfigureDay:
    day: Weekday
    categories: List[Category] = field(default_factory=list)


@dataclass(frozen=True)
class SavedNews:
    pass


@dataclass(frozen=True)
class RefreshSources:
    pass


@dataclass(frozen=True)
class Unrecognized:
    original: str


Intent = Union[DailySummary, SearchCategory, SearchText, ConfigureDay, SavedNews, RefreshSources, Unrecognized]

DAILY_SUMMARY_PHRASES = ("qué hay", "resumen", "noticias de hoy", "últimas noticias")

CATEGORY_PHRASES: List[Tuple[Category, Tuple[str, ...]]] = [
    (Category.SPORTS, ("deportes", "deporte")),
    (Category.POLITICS, ("política", "político")),
    (Category.ECONOMY, ("economía", "económico")),
    (Category.TECHNOLOGY, ("tecnología", "tech")),
    (Category.SCIENCE_TECH_INNOVATION, ("cti", "concytec", "investigación")),
]

CONFIGURE_VERB = "configura"
CONFIGURABLE_DAYS = ("lunes", "martes", "miércoles", "jueves", "viernes")

SAVED_PHRASES = ("guardadas", "favoritas", "mis noticias")
REFRESH_PHRASES = ("actualiza", "refresca", "nuevas noticias")

DAY_PHRASES: List[Tuple[Weekday, Tuple[str, ...]]] = [
    (Weekday.MONDAY, ("lunes",)),
    (Weekday.TUESDAY, ("martes",)),
    (Weekday.WEDNESDAY, ("miércoles", "miercoles")),
    (Weekday.THURSDAY, ("jueves",)),
    (Weekday.FRIDAY, ("viernes",)),
    (Weekday.SATURDAY, ("sábado", "sabado")),
    (Weekday.SUNDAY, ("domingo",)),
]

CONFIG_CATEGORY_PHRASES: List[Tuple[Category, Tuple[str, ...]]] = [
    (Category.SPORTS, ("deporte",)),
    (Category.POLITICS, ("política", "politica")),
    (Category.ECONOMY, ("economía", "economia")),
    (Category.TECHNOLOGY, ("tecnología", "tecnologia")),
    (Category.ENTERTAINMENT, ("entretenimiento", "espectáculo")),
]


def _has_any(text: str, phrases) -> bool:
    return any(p in text for p in phrases)


def extract_day(text: str, now: Optional[datetime] = None) -> Weekday:
    for day, phrases in DAY_PHRASES:
        if _has_any(text, phrases):
            return day
    return Weekday.today(now)


def extract_categories(text: str) -> List[Category]:
    found = [c for c, phrases in CONFIG_CATEGORY_PHRASES if _has_any(text, phrases)]
    return found or [Category.GENERAL]


def classify(utterance: str, now: Optional[datetime] = None) -> Intent:
    text = utterance.lower()

    if _has_any(text, DAILY_SUMMARY_PHRASES):
        return DailySummary()

    # checked before the category rules: "configura el lunes con política" names a
    # category but asks for configuration
    if CONFIGURE_VERB in text and _has_any(text, CONFIGURABLE_DAYS):
        return ConfigureDay(extract_day(text, now), extract_categories(text))

    for category, phrases in CATEGORY_PHRASES:
        if _has_any(text, phrases):
            return SearchCategory(category)

    if _has_any(text, SAVED_PHRASES):
        return SavedNews()

    if _has_any(text, REFRESH_PHRASES):
        return RefreshSources()

    return SearchText(utterance)


def from_model_label(label: str, utterance: str) -> Intent:
    """Map a label from ``GenerationService.classify_intent_via_model`` onto an Intent."""
    label = (label or "").strip().strip('"').strip()
    kind, _, arg = label.partition(":")
    kind = kind.strip().lower()
    arg = arg.strip()

    if kind == "resumen_dia":
        return DailySummary()
    if kind == "buscar_categoria":
        category = Category.parse(arg)
        return SearchCategory(category) if category else SearchText(arg or utterance)
    if kind == "buscar_texto":
        return SearchText(arg or utterance)
    if kind == "configurar":
        lowered = utterance.lower()
        return ConfigureDay(extract_day(lowered), extract_categories(lowered))
    return Unrecognized(utterance)
