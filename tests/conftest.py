# tests/conftest.py
import pathlib, pytest
from dotenv import load_dotenv

@pytest.fixture(scope="session", autouse=True)
def _load_test_env():
    load_dotenv(pathlib.Path(__file__).parent / ".env.test", override=True)


class FakeGeneration:
    """Stands in for GenerationService; records every call instead of hitting OpenAI."""

    def __init__(self, answer="Respuesta de prueba", configured=True):
        self.answer = answer
        self.configured = configured
        self.calls = []

    def is_configured(self):
        return self.configured

    def reconfigure(self, api_key, model=None):
        self.configured = bool(api_key)

    def complete(self, system_prompt, context, query):
        self.calls.append(("complete", query, context))
        return self.answer

    def summarize(self, content):
        self.calls.append(("summarize", content))
        return "Resumen corto"

    def classify_intent_via_model(self, query):
        self.calls.append(("intent", query))
        return "no_reconocida"


@pytest.fixture()
def store():
    from newsdesk.store import DocumentStore
    s = DocumentStore("sqlite://")
    s.init_db()
    return s

@pytest.fixture()
def generation():
    return FakeGeneration()

@pytest.fixture()
def config_service(store):
    from newsdesk.preferences import ConfigurationService
    return ConfigurationService(store)

@pytest.fixture()
def assistant(store, config_service, generation):
    from newsdesk.assistant import NewsAssistant
    return NewsAssistant(store, config_service, generation)

@pytest.fixture()
def make_doc():
    from newsdesk.models import Category, Document, now_millis

    def _make(title="Titular", url=None, category=Category.GENERAL, content=None, age_hours=0, **kw):
        now = now_millis()
        return Document(
            id=kw.pop("id", None) or f"id-{title}",
            title=title,
            full_content=content or f"Contenido de {title}",
            category=category,
            source_name=kw.pop("source_name", "RPP Noticias"),
            published_at=now - int(age_hours * 3600 * 1000),
            ingested_at=now,
            original_url=url or f"https://example.pe/{abs(hash(title))}",
            **kw,
        )
    return _make

@pytest.fixture()
def services(store, generation):
    from newsdesk.services import Services
    from newsdesk.preferences import ConfigurationService
    from newsdesk.assistant import NewsAssistant
    from newsdesk.sources import IngestionOrchestrator
    config = ConfigurationService(store)
    return Services(
        store=store,
        config=config,
        generation=generation,
        orchestrator=IngestionOrchestrator(sources=[]),
        assistant=NewsAssistant(store, config, generation),
    )

@pytest.fixture()
def client(services):
    from fastapi.testclient import TestClient
    from newsdesk.main import create_app
    return TestClient(create_app(services))
