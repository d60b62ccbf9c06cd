# tests/test_preferences.py
import asyncio
from datetime import datetime

import pytest
from freezegun import freeze_time

from newsdesk.models import Category, UserConfigRow, Weekday
from newsdesk.schema import DayPreference, UserConfiguration, decode_weekly_preferences, encode_weekly_preferences

MONDAY = datetime(2025, 1, 6, 10, 0)


def test_default_configuration_when_nothing_stored(config_service):
    cfg = config_service.get()
    assert cfg == UserConfiguration()
    assert config_service.active_categories_for_today(MONDAY) == Category.all()


def test_day_preference_roundtrips_through_store(config_service):
    assert config_service.set_day_preference(Weekday.MONDAY, [Category.SPORTS, Category.SPORTS]).ok
    cfg = config_service.get()
    assert cfg.weekly_preferences[Weekday.MONDAY] == DayPreference(
        active_categories=[Category.SPORTS], exclusive_mode=True
    )
    assert config_service.active_categories_for_today(MONDAY) == [Category.SPORTS]


def test_exclusions_apply_on_days_without_exclusive_mode(config_service):
    config_service.exclude_category(Category.HEALTH)
    config_service.exclude_category(Category.HEALTH)
    assert config_service.get().excluded_categories == [Category.HEALTH]
    assert Category.HEALTH not in config_service.active_categories_for_today(MONDAY)
    assert config_service.is_excluded(Category.HEALTH)


def test_keywords_and_sources(config_service):
    config_service.follow_keyword(" sunat ")
    config_service.follow_keyword("sunat")
    config_service.prefer_source("RPP Noticias")
    cfg = config_service.get()
    assert cfg.followed_keywords == ["sunat"]
    assert cfg.preferred_sources == ["RPP Noticias"]
    assert not config_service.follow_keyword("   ").ok


def test_weekly_encoding_is_versioned():
    prefs = {Weekday.FRIDAY: DayPreference(active_categories=[Category.ECONOMY], exclusive_mode=True)}
    payload = encode_weekly_preferences(prefs)
    assert payload == {
        "version": 1,
        "days": {"FRIDAY": {"active_categories": ["ECONOMY"], "exclusive_mode": True, "preferred_time": None}},
    }
    with pytest.raises(ValueError):
        decode_weekly_preferences({"version": 99, "days": {}})
    with pytest.raises(ValueError):
        decode_weekly_preferences({"version": 1, "days": {"Lunes": {}}})


def test_corrupt_row_reads_as_default(store, config_service):
    store.save_config_row(UserConfigRow(weekly_preferences={"version": 0}))
    assert config_service.get() == UserConfiguration()


def test_watch_emits_on_change(config_service):
    async def scenario():
        stream = config_service.watch()
        first = await stream.__anext__()
        config_service.exclude_category(Category.SPORTS)
        second = await asyncio.wait_for(stream.__anext__(), timeout=1)
        await stream.aclose()
        return first, second

    first, second = asyncio.run(scenario())
    assert first.excluded_categories == []
    assert second.excluded_categories == [Category.SPORTS]


@freeze_time("2025-01-06 03:00:00")  # Monday in UTC, still Sunday 22:00 in Lima
def test_today_follows_lima_calendar(config_service):
    config_service.set_day_preference(Weekday.SUNDAY, [Category.SPORTS])
    assert Weekday.today() == Weekday.SUNDAY
    assert config_service.active_categories_for_today() == [Category.SPORTS]


def test_today_converts_aware_datetimes():
    from datetime import timezone
    assert Weekday.today(datetime(2025, 1, 6, 3, 0, tzinfo=timezone.utc)) == Weekday.SUNDAY
    assert Weekday.today(datetime(2025, 1, 6, 3, 0)) == Weekday.MONDAY


def test_closing_watch_releases_store_subscription(config_service, store):
    async def scenario():
        stream = config_service.watch()
        await stream.__anext__()
        assert len(store._watchers) == 1
        await stream.aclose()

    asyncio.run(scenario())
    assert store._watchers == []
