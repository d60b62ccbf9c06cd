# tests/test_assistant.py
from newsdesk.errors import GenerationError, Result, StorageError
from newsdesk.models import Category, Weekday
from newsdesk.schema import ConfigurationType, ResponseType, SuggestedAction


def test_not_configured_short_circuits(assistant, generation, mocker):
    generation.configured = False
    spy = mocker.spy(assistant.store, "search")
    res = assistant.ask("noticias de deportes")
    assert res.ok
    assert res.value.response_type == ResponseType.ERROR
    assert res.value.suggested_action == SuggestedAction.CONFIGURE_PREFERENCES
    assert generation.calls == [] and spy.call_count == 0


def test_blank_utterance_is_invalid_input(assistant, generation):
    res = assistant.ask("   ")
    assert res.value.response_type == ResponseType.ERROR
    assert generation.calls == []


def test_no_documents_means_no_generation(assistant, generation):
    res = assistant.ask("noticias de economía")
    assert res.ok
    assert res.value.response_type == ResponseType.EMPTY_QUERY
    assert res.value.suggested_action == SuggestedAction.REFRESH_SOURCES
    assert generation.calls == []


def test_answer_marks_documents_consulted(assistant, store, generation, make_doc):
    store.upsert(make_doc("SUNAT amplía plazo", id="s1"))
    res = assistant.ask("sunat")
    assert res.ok
    assert res.value.response_type == ResponseType.INFORMATIVE
    assert res.value.text == "Respuesta de prueba"
    assert [d.id for d in res.value.referenced_documents] == ["s1"]
    assert len(generation.calls) == 1
    assert "TÍTULO: SUNAT amplía plazo" in generation.calls[0][2]
    assert store.get("s1").consult_count == 1


def test_referenced_documents_are_capped(assistant, store, make_doc):
    store.upsert_many([make_doc(f"Dólar {i}", content="el dólar hoy") for i in range(8)])
    res = assistant.ask("dólar")
    assert len(res.value.referenced_documents) == 5


def test_configure_day_applies_configuration(assistant, config_service, generation):
    res = assistant.ask("configura el lunes con política y economía")
    assert res.ok
    assert res.value.response_type == ResponseType.CONFIGURATION_SUCCESS
    applied = res.value.applied_configuration
    assert applied.type == ConfigurationType.DAY_PREFERENCE
    assert applied.parameters == {"day": "MONDAY", "categories": "POLITICS,ECONOMY"}
    pref = config_service.get().weekly_preferences[Weekday.MONDAY]
    assert pref.active_categories == [Category.POLITICS, Category.ECONOMY] and pref.exclusive_mode
    assert len(generation.calls) == 1


def test_configure_day_storage_failure(assistant, config_service, generation, mocker):
    mocker.patch.object(
        config_service, "set_day_preference", return_value=Result.failure(StorageError("disco lleno"))
    )
    res = assistant.ask("configura el martes con deporte")
    assert res.value.response_type == ResponseType.CONFIGURATION_FAILED
    assert generation.calls == []


def test_generation_failure_is_a_failed_result(assistant, store, generation, make_doc, mocker):
    store.upsert(make_doc("SUNAT", id="s1"))
    mocker.patch.object(generation, "complete", side_effect=GenerationError("cuota agotada"))
    res = assistant.ask("sunat")
    assert not res.ok
    assert isinstance(res.error, GenerationError)
    assert "Error al procesar consulta" in res.message
    assert store.get("s1").consult_count == 0
