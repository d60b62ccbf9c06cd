# newsdesk/normalizer.py
"""
Raw feed item -> Document.

Everything here is pure and synchronous: it runs inline after a source's fetch returns.
Matching is plain substring containment on lowercased text (no word boundaries), so a
short trigger such as "app" also fires inside longer words like "happening".
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple
import hashlib
import re

import pytz

from .config import TIMEZONE
from .logging_setup import get_logger
from .models import Category, Document, now_millis
from .schema import RawFeedItem

logger = get_logger("newsdesk.normalizer")

# ---------- HTML ----------

_TAG_RE = re.compile(r"<[^>]*>")
_NAMED_ENTITY_RE = re.compile(r"&[a-z]+;")
_WS_RE = re.compile(r"\s+")


def strip_html(html: str) -> str:
    text = _TAG_RE.sub("", html or "")
    text = text.replace("&nbsp;", " ")
    text = _NAMED_ENTITY_RE.sub(" ", text)
    text = _WS_RE.sub(" ", text)
    return text.strip()

# ---------- Dates ----------

# RFC 822 zone names; anything else falls through to the next format
_NAMED_ZONES: Dict[str, int] = {
    "UT": 0, "UTC": 0, "GMT": 0, "Z": 0,
    "EST": -5, "EDT": -4, "CST": -6, "CDT": -5,
    "MST": -7, "MDT": -6, "PST": -8, "PDT": -7,
    "PET": -5,
}


def _rfc822_numeric(s: str) -> datetime:
    return datetime.strptime(s, "%a, %d %b %Y %H:%M:%S %z")


def _rfc822_named(s: str) -> datetime:
    head, _, zone = s.rpartition(" ")
    if zone.upper() not in _NAMED_ZONES:
        raise ValueError(f"unknown zone {zone!r}")
    base = datetime.strptime(head, "%a, %d %b %Y %H:%M:%S")
    return base.replace(tzinfo=timezone(timedelta(hours=_NAMED_ZONES[zone.upper()])))


def _iso_seconds(s: str) -> datetime:
    return datetime.strptime(s, "%Y-%m-%dT%H:%M:%S%z")


def _iso_millis(s: str) -> datetime:
    return datetime.strptime(s, "%Y-%m-%dT%H:%M:%S.%f%z")


def _plain_local(s: str) -> datetime:
    naive = datetime.strptime(s, "%Y-%m-%d %H:%M:%S")
    return pytz.timezone(TIMEZONE).localize(naive)


# Tried in this order; the first that parses wins.
DATE_PARSERS: List[Tuple[str, Callable[[str], datetime]]] = [
    ("rfc822_numeric_offset", _rfc822_numeric),
    ("rfc822_named_zone", _rfc822_named),
    ("iso8601", _iso_seconds),
    ("iso8601_millis", _iso_millis),
    ("plain_local", _plain_local),
]


def parse_published(raw: Optional[str], fallback_ms: Optional[int] = None) -> int:
    """Epoch millis for a feed date string, or ``fallback_ms`` (default: now) if nothing parses."""
    fallback = fallback_ms if fallback_ms is not None else now_millis()
    s = (raw or "").strip()
    if not s:
        return fallback
    for _name, parser in DATE_PARSERS:
        try:
            return int(parser(s).timestamp() * 1000)
        except ValueError:
            continue
    logger.debug("DATE_UNPARSEABLE", extra={"raw": s})
    return fallback

# ---------- Classification ----------

# Priority cascade: the first group with any hit decides the category.
CATEGORY_RULES: List[Tuple[Category, Tuple[str, ...]]] = [
    (Category.SCIENCE_TECH_INNOVATION, ("concytec", "investigación", "innovación", "tecnología")),
    (Category.POLITICS, ("congreso", "ministro", "presidente", "gobierno")),
    (Category.SPORTS, ("fútbol", "deporte", "campeón", "liga")),
    (Category.ECONOMY, ("dólar", "economía", "mercado", "banco")),
    (Category.TECHNOLOGY, ("app", "software", "inteligencia artificial")),
    (Category.HEALTH, ("salud", "hospital", "medicina")),
    (Category.ENTERTAINMENT, ("película", "música", "artista", "concierto")),
]


def classify_category(title: str, content: str) -> Category:
    text = f"{title} {content}".lower()
    for category, triggers in CATEGORY_RULES:
        if any(t in text for t in triggers):
            return category
    return Category.GENERAL

# ---------- Keywords & entities ----------

CTI_KEYWORDS = ("concytec", "pct", "innovación", "investigación", "ciencia", "tecnología", "patente")
GOVERNMENT_KEYWORDS = ("congreso", "ministro", "indeci", "sunat", "gobierno", "municipalidad")
SPORTS_KEYWORDS = ("cueva", "lapadula", "guerrero", "carrillo", "universitario", "alianza lima", "cristal")


def extract_keywords(title: str, content: str) -> List[str]:
    text = f"{title} {content}".lower()
    found: List[str] = []
    for kw in CTI_KEYWORDS + GOVERNMENT_KEYWORDS + SPORTS_KEYWORDS:
        if kw in text:
            label = kw[:1].upper() + kw[1:]
            if label not in found:
                found.append(label)
    return found


ENTITY_TRIGGERS: Dict[str, str] = {
    "concytec": "CONCYTEC",
    "congreso": "Congreso de la República",
    "indeci": "INDECI",
    "sunat": "SUNAT",
    "ministerio": "Gobierno",
    "pcm": "PCM",
    "minedu": "MINEDU",
    "minsa": "MINSA",
    "produce": "PRODUCE",
}


def detect_entity(title: str, content: str) -> Optional[str]:
    text = f"{title} {content}".lower()
    for trigger, entity in ENTITY_TRIGGERS.items():
        if trigger in text:
            return entity
    return None

# ---------- Identity ----------

def document_id(title: str, url: str) -> str:
    return hashlib.md5(f"{title}{url}".encode("utf-8")).hexdigest()

# ---------- Entry point ----------

def normalize(raw: RawFeedItem, source_name: str, now_ms: Optional[int] = None) -> Optional[Document]:
    """Build a Document, or None when the item has no title or no link."""
    title = (raw.title or "").strip()
    url = (raw.link or "").strip()
    if not title or not url:
        return None

    ingested = now_ms if now_ms is not None else now_millis()
    content = (strip_html(raw.description) if raw.description else "") or title

    return Document(
        id=document_id(title, url),
        title=title,
        full_content=content,
        category=classify_category(title, content),
        source_name=source_name,
        responsible_entity=detect_entity(title, content),
        keywords=extract_keywords(title, content),
        published_at=parse_published(raw.publish_date, fallback_ms=ingested),
        ingested_at=ingested,
        original_url=url,
    )


def normalize_many(items: List[RawFeedItem], source_name: str, now_ms: Optional[int] = None) -> List[Document]:
    docs: List[Document] = []
    for raw in items:
        try:
            doc = normalize(raw, source_name, now_ms=now_ms)
        except Exception as e:
            # one bad item never sinks the rest of the feed
            logger.warning("NORMALIZE_FAILED", extra={"source": source_name, "error": type(e).__name__})
            continue
        if doc is not None:
            docs.append(doc)
    return docs
