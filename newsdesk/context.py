# newsdesk/context.py
from __future__ import annotations

from typing import List, Optional, Sequence

from .models import Category, Document
from .preferences import ConfigurationService
from .schema import ConversationContext

MAX_DOCUMENTS = 5
SNIPPET_CHARS = 1500
HISTORY_TURNS = 3
MAX_CONTEXT_CHARS = 9000


def _truncate(s: str, max_chars: int) -> str:
    return s[:max_chars] if s else s


def document_block(index: int, doc: Document, snippet_chars: int = SNIPPET_CHARS) -> str:
    lines = [
        f"--- NOTICIA {index} ---",
        f"TÍTULO: {doc.title}",
        f"DIARIO: {doc.source_name}",
        f"CATEGORÍA: {doc.category.value}",
    ]
    if doc.responsible_entity:
        lines.append(f"ENTIDAD: {doc.responsible_entity}")
    lines.append(f"FECHA: {doc.published_label()}")
    content = doc.full_content or ""
    suffix = "..." if len(content) > snippet_chars else ""
    lines.append(f"CONTENIDO: {_truncate(content, snippet_chars)}{suffix}")
    return "\n".join(lines) + "\n"


class ContextBuilder:
    """Assembles the bounded text the generation service answers from."""

    def __init__(self, config: ConfigurationService):
        self.config = config

    def build(
        self,
        documents: Sequence[Document],
        utterance: str,
        conversation: Optional[ConversationContext] = None,
        active_categories: Optional[List[Category]] = None,
    ) -> str:
        if active_categories is None:
            active_categories = self.config.active_categories_for_today()

        header = (
            "CATEGORÍAS DISPONIBLES:\n"
            + ", ".join(c.value for c in Category.all())
            + "\n\nCATEGORÍAS ACTIVAS HOY:\n"
            + ", ".join(c.value for c in active_categories)
            + "\n\n"
        )

        history = ""
        if conversation and conversation.message_history:
            turns = conversation.message_history[-HISTORY_TURNS:]
            history = "\nHISTORIAL RECIENTE:\n" + "".join(
                f"{'Usuario' if m.is_user else 'Asistente'}: {m.text}\n" for m in turns
            )

        body = ""
        if documents:
            blocks = [document_block(i + 1, d) for i, d in enumerate(documents[:MAX_DOCUMENTS])]
            body = f"NOTICIAS ENCONTRADAS ({len(documents)}):\n\n" + "\n".join(blocks)
            if len(documents) > MAX_DOCUMENTS:
                body += f"\n(Y {len(documents) - MAX_DOCUMENTS} noticias más)\n"

        # documents give way first; the header and recent turns always fit
        budget = max(0, MAX_CONTEXT_CHARS - len(header) - len(_truncate(history, MAX_CONTEXT_CHARS // 3)))
        return header + _truncate(body, budget) + _truncate(history, MAX_CONTEXT_CHARS // 3)
