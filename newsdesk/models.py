from datetime import datetime
from enum import Enum
from typing import List, Optional
import time

import pytz
from sqlmodel import SQLModel, Field, Column, JSON

from .config import TIMEZONE

HOUR_MS = 60 * 60 * 1000


def now_millis() -> int:
    return int(time.time() * 1000)


class Category(str, Enum):
    POLITICS = "Política"
    ECONOMY = "Economía"
    SPORTS = "Deportes"
    TECHNOLOGY = "Tecnología"
    SCIENCE_TECH_INNOVATION = "CTI"
    HEALTH = "Salud"
    ENTERTAINMENT = "Entretenimiento"
    GENERAL = "General"

    @classmethod
    def all(cls) -> List["Category"]:
        return list(cls)

    @classmethod
    def parse(cls, raw: str) -> Optional["Category"]:
        raw = (raw or "").strip()
        for c in cls:
            if raw.lower() in (c.value.lower(), c.name.lower()):
                return c
        return None


class Weekday(str, Enum):
    MONDAY = "Lunes"
    TUESDAY = "Martes"
    WEDNESDAY = "Miércoles"
    THURSDAY = "Jueves"
    FRIDAY = "Viernes"
    SATURDAY = "Sábado"
    SUNDAY = "Domingo"

    @classmethod
    def today(cls, now: Optional[datetime] = None) -> "Weekday":
        # naive datetimes are taken as already local; aware ones are moved to the configured zone
        tz = pytz.timezone(TIMEZONE)
        if now is None:
            now = datetime.now(tz)
        elif now.tzinfo is not None:
            now = now.astimezone(tz)
        return list(cls)[now.weekday()]

    @classmethod
    def parse(cls, raw: str) -> Optional["Weekday"]:
        raw = (raw or "").strip()
        for d in cls:
            if raw.lower() in (d.value.lower(), d.name.lower()):
                return d
        return None


class Document(SQLModel, table=True):
    """A normalized news item in the 24-hour ("today") collection."""
    __tablename__ = "daily_news"

    id: str = Field(primary_key=True)
    title: str
    full_content: str = ""
    executive_summary: Optional[str] = None
    category: Category = Category.GENERAL
    source_name: str = ""
    responsible_entity: Optional[str] = None
    keywords: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    published_at: int = Field(index=True)  # epoch millis
    ingested_at: int = Field(default_factory=now_millis)
    original_url: str = ""
    was_consulted: bool = False
    consult_count: int = 0
    is_saved: bool = False

    def is_recent(self, now_ms: Optional[int] = None, hours: int = 24) -> bool:
        now_ms = now_ms if now_ms is not None else now_millis()
        return self.published_at >= now_ms - hours * HOUR_MS

    def search_blob(self) -> str:
        return f"{self.title}\n{self.full_content}\n{' '.join(self.keywords or [])}".lower()

    def published_label(self) -> str:
        dt = datetime.fromtimestamp(self.published_at / 1000, tz=pytz.timezone(TIMEZONE))
        return dt.strftime("%d/%m/%Y %H:%M")


class SavedDocument(SQLModel, table=True):
    """Reduced, permanent copy of a document the user chose to keep."""
    __tablename__ = "saved_news"

    id: str = Field(primary_key=True)
    title: str
    executive_summary: str = ""
    category: Category = Category.GENERAL
    source_name: str = ""
    published_at: int
    saved_at: int = Field(default_factory=now_millis, index=True)
    original_url: str = ""
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    reminder_at: Optional[int] = None
    reminder_message: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Document, tags: Optional[List[str]] = None) -> "SavedDocument":
        return cls(
            id=doc.id,
            title=doc.title,
            executive_summary=doc.executive_summary or (doc.full_content or "")[:200],
            category=doc.category,
            source_name=doc.source_name,
            published_at=doc.published_at,
            original_url=doc.original_url,
            tags=list(tags or []),
        )

    def to_document(self) -> Document:
        return Document(
            id=self.id,
            title=self.title,
            full_content=self.executive_summary,
            executive_summary=self.executive_summary,
            category=self.category,
            source_name=self.source_name,
            keywords=[],
            published_at=self.published_at,
            ingested_at=self.saved_at,
            original_url=self.original_url,
            is_saved=True,
        )


class UserConfigRow(SQLModel, table=True):
    __tablename__ = "user_configuration"

    id: str = Field(default="default", primary_key=True)
    weekly_preferences: dict = Field(default_factory=dict, sa_column=Column(JSON))
    excluded_categories: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    preferred_sources: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    followed_keywords: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    alerts_enabled: bool = True
    morning_time: str = "08:00"
    evening_time: str = "17:00"
    updated_at: int = Field(default_factory=now_millis)


class AppSetting(SQLModel, table=True):
    """Key-value settings (last ingestion, first run, voice mode, voice rate)."""
    __tablename__ = "app_settings"

    key: str = Field(primary_key=True)
    value: str = ""
