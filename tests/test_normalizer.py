# tests/test_normalizer.py
from datetime import datetime, timezone

from newsdesk.models import Category
from newsdesk.normalizer import (
    classify_category,
    detect_entity,
    document_id,
    extract_keywords,
    normalize,
    normalize_many,
    parse_published,
    strip_html,
)
from newsdesk.schema import RawFeedItem


def _ms(*args, tz=timezone.utc):
    return int(datetime(*args, tzinfo=tz).timestamp() * 1000)


def test_strip_html_removes_tags_and_entities():
    html = "<p>Hola&nbsp;<b>mundo</b> &amp;   más</p>\n<br/>"
    assert strip_html(html) == "Hola mundo más"


def test_category_is_a_priority_cascade():
    # politics outranks sports even though both match
    assert classify_category("Congreso anuncia nueva liga de fútbol", "") == Category.POLITICS
    # CTI outranks everything
    assert classify_category("Gobierno financia investigación", "") == Category.SCIENCE_TECH_INNOVATION
    assert classify_category("Receta de ceviche", "") == Category.GENERAL


def test_keywords_are_capitalized_and_deduplicated():
    kws = extract_keywords("CONCYTEC y Concytec", "el congreso y la ciencia")
    assert kws == ["Concytec", "Ciencia", "Congreso"]


def test_entity_first_trigger_wins():
    assert detect_entity("SUNAT y Congreso", "") == "Congreso de la República"
    assert detect_entity("Sin entidad", "") is None


def test_date_formats_in_order():
    expected = _ms(2025, 1, 1, 12, 0, 0)
    assert parse_published("Wed, 01 Jan 2025 12:00:00 +0000") == expected
    assert parse_published("Wed, 01 Jan 2025 07:00:00 -0500") == expected
    assert parse_published("Wed, 01 Jan 2025 12:00:00 GMT") == expected
    assert parse_published("2025-01-01T12:00:00+0000") == expected
    assert parse_published("2025-01-01T12:00:00.000+0000") == expected
    # plain dates are Lima local time (UTC-5)
    assert parse_published("2025-01-01 07:00:00") == expected


def test_unparseable_date_falls_back():
    assert parse_published("ayer por la tarde", fallback_ms=42) == 42
    assert parse_published(None, fallback_ms=7) == 7


def test_normalize_drops_items_without_title_or_link():
    assert normalize(RawFeedItem(title="", link="https://a"), "RPP") is None
    assert normalize(RawFeedItem(title="Algo", link=None), "RPP") is None


def test_normalize_builds_document():
    raw = RawFeedItem(
        title="Ministro de Economía anuncia medidas",
        description="<p>El <b>dólar</b> cae</p>",
        link="https://rpp.pe/nota",
        publish_date="Wed, 01 Jan 2025 12:00:00 +0000",
    )
    doc = normalize(raw, "RPP Noticias", now_ms=1)
    assert doc.id == document_id(raw.title, raw.link)
    assert doc.full_content == "El dólar cae"
    assert doc.category == Category.POLITICS
    assert doc.keywords == ["Ministro"]
    assert doc.published_at == _ms(2025, 1, 1, 12, 0, 0)
    assert doc.ingested_at == 1
    assert not doc.is_saved and doc.consult_count == 0


def test_missing_description_falls_back_to_title():
    doc = normalize(RawFeedItem(title="Solo título", link="https://a"), "RPP", now_ms=5)
    assert doc.full_content == "Solo título"
    assert doc.published_at == 5


def test_normalize_many_skips_bad_items():
    items = [RawFeedItem(title="A", link="https://a"), RawFeedItem(title=None, link="https://b")]
    docs = normalize_many(items, "RPP")
    assert [d.title for d in docs] == ["A"]
