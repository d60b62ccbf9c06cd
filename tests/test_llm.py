# tests/test_llm.py
import pytest

from newsdesk.errors import EmptyGenerationError, GenerationError, NotConfiguredError
from newsdesk.llm import SUMMARY_INPUT_CHARS, GenerationService


def _service(mocker, content="Hola"):
    svc = GenerationService(api_key="sk-test", model="gpt-test")
    client = mocker.Mock()
    message = mocker.Mock(content=content)
    client.chat.completions.create.return_value = mocker.Mock(choices=[mocker.Mock(message=message)])
    svc._client = client
    return svc, client


def test_complete_sends_system_and_context(mocker):
    svc, client = _service(mocker, "  Respuesta  ")
    assert svc.complete("SISTEMA", "CTX", "¿qué pasó?") == "Respuesta"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-test" and kwargs["temperature"] == 0.7 and kwargs["max_tokens"] == 500
    assert kwargs["messages"][0] == {"role": "system", "content": "SISTEMA"}
    assert "CTX" in kwargs["messages"][1]["content"] and "¿qué pasó?" in kwargs["messages"][1]["content"]


def test_blank_answer_is_a_failure(mocker):
    svc, _ = _service(mocker, "   ")
    with pytest.raises(EmptyGenerationError):
        svc.complete("s", "c", "q")


def test_client_errors_are_wrapped(mocker):
    svc, client = _service(mocker)
    client.chat.completions.create.side_effect = RuntimeError("429 quota")
    with pytest.raises(GenerationError) as exc:
        svc.summarize("texto")
    assert isinstance(exc.value.__cause__, RuntimeError)


def test_not_configured_and_reconfigure(mocker):
    svc = GenerationService(api_key="")
    assert not svc.is_configured()
    with pytest.raises(NotConfiguredError):
        svc.complete("s", "c", "q")

    openai_cls = mocker.patch("newsdesk.llm.OpenAI")
    svc.reconfigure("sk-nueva", model="gpt-otro")
    assert svc.is_configured() and svc.model == "gpt-otro"
    svc._get_client()
    openai_cls.assert_called_once_with(api_key="sk-nueva")


def test_summarize_truncates_input(mocker):
    svc, client = _service(mocker, "Resumen")
    svc.summarize("x" * (SUMMARY_INPUT_CHARS + 500))
    prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
    assert "x" * SUMMARY_INPUT_CHARS in prompt and "x" * (SUMMARY_INPUT_CHARS + 1) not in prompt


def test_intent_label_blank_maps_to_unrecognized(mocker):
    svc, _ = _service(mocker, "")
    assert svc.classify_intent_via_model("???") == "no_reconocida"
