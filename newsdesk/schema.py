from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional
import uuid

from pydantic import BaseModel, Field, field_validator

from .models import Category, Document, UserConfigRow, Weekday, now_millis

HISTORY_LIMIT = 10
WEEKLY_PREFS_VERSION = 1


def _dedupe(values):
    seen = set()
    out = []
    for v in values:
        if v in seen:
            continue
        seen.add(v)
        out.append(v)
    return out


# ---------- Feeds ----------

class FeedSource(BaseModel):
    name: str
    url: str
    active: bool = True


class RawFeedItem(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    publish_date: Optional[str] = None  # untouched pubDate/updated string


# ---------- User configuration ----------

class DayPreference(BaseModel):
    active_categories: List[Category] = Field(default_factory=list)
    exclusive_mode: bool = False  # True = only these categories that day
    preferred_time: Optional[str] = None

    @field_validator("active_categories")
    @classmethod
    def _unique_categories(cls, v: List[Category]) -> List[Category]:
        return _dedupe(v)


class UserConfiguration(BaseModel):
    id: str = "default"
    weekly_preferences: Dict[Weekday, DayPreference] = Field(default_factory=dict)
    excluded_categories: List[Category] = Field(default_factory=list)
    preferred_sources: List[str] = Field(default_factory=list)
    followed_keywords: List[str] = Field(default_factory=list)
    alerts_enabled: bool = True
    morning_time: str = "08:00"
    evening_time: str = "17:00"

    @field_validator("excluded_categories", "preferred_sources", "followed_keywords")
    @classmethod
    def _unique(cls, v):
        return _dedupe(v)

    # The weekly map is stored as {"version": N, "days": {WEEKDAY_NAME: {...}}} keyed by the
    # enum *name*, so renaming a display label never orphans stored rows.
    def to_row(self) -> UserConfigRow:
        return UserConfigRow(
            id=self.id,
            weekly_preferences=encode_weekly_preferences(self.weekly_preferences),
            excluded_categories=[c.name for c in self.excluded_categories],
            preferred_sources=list(self.preferred_sources),
            followed_keywords=list(self.followed_keywords),
            alerts_enabled=self.alerts_enabled,
            morning_time=self.morning_time,
            evening_time=self.evening_time,
            updated_at=now_millis(),
        )

    @classmethod
    def from_row(cls, row: UserConfigRow) -> "UserConfiguration":
        return cls(
            id=row.id,
            weekly_preferences=decode_weekly_preferences(row.weekly_preferences or {}),
            excluded_categories=[Category[name] for name in row.excluded_categories or [] if name in Category.__members__],
            preferred_sources=row.preferred_sources or [],
            followed_keywords=row.followed_keywords or [],
            alerts_enabled=row.alerts_enabled,
            morning_time=row.morning_time,
            evening_time=row.evening_time,
        )


def encode_weekly_preferences(prefs: Dict[Weekday, DayPreference]) -> Dict[str, Any]:
    days = {}
    for day in Weekday:  # fixed key order
        pref = prefs.get(day)
        if pref is None:
            continue
        days[day.name] = {
            "active_categories": [c.name for c in pref.active_categories],
            "exclusive_mode": pref.exclusive_mode,
            "preferred_time": pref.preferred_time,
        }
    return {"version": WEEKLY_PREFS_VERSION, "days": days}


def decode_weekly_preferences(payload: Dict[str, Any]) -> Dict[Weekday, DayPreference]:
    version = payload.get("version")
    if version != WEEKLY_PREFS_VERSION:
        raise ValueError(f"Unsupported weekly preferences version: {version!r}")
    out: Dict[Weekday, DayPreference] = {}
    for key, value in (payload.get("days") or {}).items():
        if key not in Weekday.__members__:
            raise ValueError(f"Unknown weekday key: {key!r}")
        out[Weekday[key]] = DayPreference(
            active_categories=[Category[c] for c in value.get("active_categories", [])],
            exclusive_mode=bool(value.get("exclusive_mode", False)),
            preferred_time=value.get("preferred_time"),
        )
    return out


# ---------- Conversation ----------

class ChatMessage(BaseModel):
    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    text: str
    is_user: bool
    timestamp: int = Field(default_factory=now_millis)
    referenced_document_ids: List[str] = Field(default_factory=list)


class ConversationContext(BaseModel):
    message_history: List[ChatMessage] = Field(default_factory=list)
    last_mentioned_document_ids: List[str] = Field(default_factory=list)
    current_category: Optional[Category] = None
    reference_day: Weekday = Field(default_factory=Weekday.today)

    def add_message(self, message: ChatMessage) -> "ConversationContext":
        history = (self.message_history + [message])[-HISTORY_LIMIT:]
        return self.model_copy(update={"message_history": history})


# ---------- Assistant responses ----------

class ResponseType(str, Enum):
    INFORMATIVE = "informative"
    CONFIGURATION_SUCCESS = "configuration_success"
    CONFIGURATION_FAILED = "configuration_failed"
    EMPTY_QUERY = "empty_query"
    ERROR = "error"


class SuggestedAction(str, Enum):
    REFRESH_SOURCES = "refresh_sources"
    READ_DETAIL = "read_detail"
    SAVE_NEWS = "save_news"
    CONFIGURE_PREFERENCES = "configure_preferences"
    SEE_MORE_CATEGORY = "see_more_category"


class ConfigurationType(str, Enum):
    DAY_PREFERENCE = "day_preference"
    EXCLUDE_CATEGORY = "exclude_category"
    FOLLOW_KEYWORD = "follow_keyword"
    PREFERRED_SOURCE = "preferred_source"
    CONSOLIDATION_TIME = "consolidation_time"


class AppliedConfiguration(BaseModel):
    type: ConfigurationType
    parameters: Dict[str, str] = Field(default_factory=dict)


class DocumentOut(BaseModel):
    id: str
    title: str
    category: Category
    source_name: str
    responsible_entity: Optional[str] = None
    executive_summary: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    published_at: int
    original_url: str
    was_consulted: bool = False
    consult_count: int = 0
    is_saved: bool = False

    @classmethod
    def from_document(cls, doc: Document) -> "DocumentOut":
        return cls.model_validate(doc, from_attributes=True)


class AssistantResponse(BaseModel):
    text: str
    referenced_documents: List[DocumentOut] = Field(default_factory=list)
    response_type: ResponseType = ResponseType.INFORMATIVE
    suggested_action: Optional[SuggestedAction] = None
    applied_configuration: Optional[AppliedConfiguration] = None


class NewsStatistics(BaseModel):
    total: int = 0
    recent: int = 0
    saved: int = 0
    by_category: Dict[str, int] = Field(default_factory=dict)
    last_ingestion_at: int = 0


# ---------- HTTP bodies ----------

class ChatIn(BaseModel):
    utterance: str
    history: List[ChatMessage] = Field(default_factory=list)


class DayPreferenceIn(BaseModel):
    categories: List[Category]
    exclusive_mode: bool = True


class ValueIn(BaseModel):
    value: str


class VoiceIn(BaseModel):
    enabled: Optional[bool] = None
    rate: Optional[float] = None
