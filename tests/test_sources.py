# tests/test_sources.py
import asyncio

import feedparser
import httpx

from newsdesk.errors import IngestionError
from newsdesk.schema import FeedSource
from newsdesk.sources import IngestionOrchestrator, parse_feed

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>{name}</title>
{items}
</channel></rss>"""

ITEM = """<item><title>{title}</title><link>{link}</link>
<description>{desc}</description><pubDate>Wed, 01 Jan 2025 12:00:00 GMT</pubDate></item>"""


def rss(name, *items):
    return RSS.format(name=name, items="".join(ITEM.format(title=t, link=l, desc=d) for t, l, d in items))


def test_parse_feed_shape(mocker):
    fake = type("F", (), {})()
    fake.entries = [
        {"title": "A", "link": "http://a", "summary": "sum", "published": "Wed, 01 Jan 2025 12:00:00 GMT"},
        {"title": "B", "link": "http://b", "description": "desc", "updated": "2025-01-01T13:00:00+0000"},
    ]
    mocker.patch.object(feedparser, "parse", return_value=fake)

    items = parse_feed(b"<rss/>")
    assert [i.title for i in items] == ["A", "B"]
    assert items[1].description == "desc"
    assert items[1].publish_date == "2025-01-01T13:00:00+0000"


def test_partial_failure_keeps_other_sources():
    def handler(request: httpx.Request):
        if request.url.host == "caido.pe":
            return httpx.Response(503)
        return httpx.Response(200, text=rss("Ok", ("Congreso aprueba ley", "https://ok.pe/1", "texto")))

    orch = IngestionOrchestrator(
        sources=[FeedSource(name="Ok", url="https://ok.pe/feed"), FeedSource(name="Caído", url="https://caido.pe/feed")],
        transport=httpx.MockTransport(handler),
    )
    res = asyncio.run(orch.fetch_all())
    assert res.ok
    assert [d.source_name for d in res.value] == ["Ok"]


def test_inactive_sources_are_skipped():
    seen = []

    def handler(request: httpx.Request):
        seen.append(request.url.host)
        return httpx.Response(200, text=rss("Ok", ("Nota", "https://ok.pe/1", "texto")))

    orch = IngestionOrchestrator(
        sources=[FeedSource(name="Ok", url="https://ok.pe/feed"), FeedSource(name="Off", url="https://off.pe/feed", active=False)],
        transport=httpx.MockTransport(handler),
    )
    assert asyncio.run(orch.fetch_all()).ok
    assert seen == ["ok.pe"]


def test_all_sources_failing_is_a_failure():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("sin conexión", request=request)

    orch = IngestionOrchestrator(
        sources=[FeedSource(name="A", url="https://a.pe/feed"), FeedSource(name="B", url="https://b.pe/feed")],
        transport=httpx.MockTransport(handler),
    )
    res = asyncio.run(orch.fetch_all())
    assert not res.ok
    assert isinstance(res.error, IngestionError)


def test_slow_source_times_out():
    async def handler(request: httpx.Request):
        await asyncio.sleep(1)
        return httpx.Response(200, text=rss("Lento"))

    orch = IngestionOrchestrator(
        sources=[FeedSource(name="Lento", url="https://lento.pe/feed")],
        timeout=0.05,
        transport=httpx.MockTransport(handler),
    )
    res = asyncio.run(orch.fetch_all())
    assert not res.ok
