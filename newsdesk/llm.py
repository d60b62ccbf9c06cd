# newsdesk/llm.py
from __future__ import annotations

from typing import Optional

from openai import OpenAI

from .config import OPENAI_API_KEY, OPENAI_MODEL
from .errors import EmptyGenerationError, GenerationError, NotConfiguredError
from .logging_setup import get_logger

logger = get_logger("newsdesk.llm")

TEMPERATURE = 0.7
MAX_OUTPUT_TOKENS = 500
SUMMARY_INPUT_CHARS = 3000

SYSTEM_PROMPT = """
Eres un asistente de noticias peruano conversacional e inteligente.

TUS CAPACIDADES:
1. INTERPRETAR: entender qué información busca el usuario
2. BUSCAR: en los documentos que te proporciono como contexto
3. RESUMIR: de forma clara, concisa y conversacional
4. SUGERIR: acciones útiles para el usuario

REGLAS:
- Responde SOLO con base en el contexto proporcionado
- Si no tienes información, dilo claramente
- Sé conciso: máximo 150 palabras por respuesta
- Usa español peruano natural y profesional
- Si hay varias noticias, menciona las 3 más relevantes
- Pregunta si el usuario quiere más detalles
- No inventes información que no esté en el contexto
""".strip()

SUMMARY_PROMPT = """
Resume el siguiente texto en 100 palabras o menos.
El resumen debe ser claro, directo y de estilo periodístico.
Estructura: QUÉ ocurrió, QUIÉN está involucrado, CÓMO afecta.

TEXTO:
{content}

RESUMEN (máximo 100 palabras):
""".strip()

INTENT_PROMPT = """
Analiza esta consulta y determina la intención del usuario.

CONSULTA: "{query}"

Responde SOLO con una de estas opciones:
- resumen_dia si pregunta por noticias generales de hoy
- buscar_categoria:NOMBRE si busca una categoría específica
- buscar_texto:TEXTO si busca algo específico
- configurar:TIPO si quiere configurar algo
- no_reconocida si no entiendes
""".strip()


class GenerationService:
    """
    Owns the OpenAI client. The client is built on first use and dropped by
    ``reconfigure`` so a new key takes effect on the next call.
    """

    def __init__(self, api_key: str = OPENAI_API_KEY, model: str = OPENAI_MODEL):
        self.api_key = api_key or ""
        self.model = model
        self._client: Optional[OpenAI] = None

    def is_configured(self) -> bool:
        return bool(self.api_key.strip())

    def reconfigure(self, api_key: str, model: Optional[str] = None) -> None:
        self.api_key = api_key or ""
        if model:
            self.model = model
        self._client = None
        logger.info("GENERATION_RECONFIGURED", extra={"model": self.model, "configured": self.is_configured()})

    def _get_client(self) -> OpenAI:
        if not self.is_configured():
            raise NotConfiguredError("API key no configurada")
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def _chat(self, messages, what: str) -> str:
        client = self._get_client()
        try:
            resp = client.chat.completions.create(
                model=self.model,
                temperature=TEMPERATURE,
                max_tokens=MAX_OUTPUT_TOKENS,
                messages=messages,
            )
            text = resp.choices[0].message.content if resp.choices else None
        except Exception as e:
            logger.exception("OPENAI_CALL_FAILED", extra={"call": what, "error": type(e).__name__})
            raise GenerationError(f"Error al comunicar con el modelo: {e}") from e

        if not text or not text.strip():
            logger.warning("OPENAI_EMPTY_RESPONSE", extra={"call": what})
            raise EmptyGenerationError("El modelo no generó respuesta")
        return text.strip()

    def complete(self, system_prompt: str, context: str, query: str) -> str:
        user_prompt = f"CONTEXTO DISPONIBLE:\n{context}\n\nCONSULTA DEL USUARIO:\n{query}\n\nRESPUESTA:"
        return self._chat(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            what="complete",
        )

    def summarize(self, content: str) -> str:
        prompt = SUMMARY_PROMPT.format(content=(content or "")[:SUMMARY_INPUT_CHARS])
        return self._chat([{"role": "user", "content": prompt}], what="summarize")

    def classify_intent_via_model(self, query: str) -> str:
        try:
            return self._chat([{"role": "user", "content": INTENT_PROMPT.format(query=query)}], what="intent")
        except EmptyGenerationError:
            return "no_reconocida"
