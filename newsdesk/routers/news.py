from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..logging_setup import get_logger
from ..models import Category
from ..schema import DocumentOut
from ..services import Services, get_services, result_response
from ..workflow import get_statistics, save_document, search_news, summarize_document, unsave_document

logger = get_logger("newsdesk.routes.news")

router = APIRouter(tags=["News"])


def _parse_category(raw: Optional[str]) -> Optional[Category]:
    if raw is None:
        return None
    category = Category.parse(raw)
    if category is None:
        raise HTTPException(status_code=422, detail=f"Categoría desconocida: {raw}")
    return category


@router.get("/news")
def list_news(category: Optional[str] = Query(None), svc: Services = Depends(get_services)):
    docs = svc.store.list_documents(_parse_category(category))
    return [DocumentOut.from_document(d) for d in docs]


@router.get("/news/search")
def search(q: str = Query(""), limit: int = Query(20, ge=1, le=100), svc: Services = Depends(get_services)):
    logger.info(f"Search: q={q!r} limit={limit}")
    return [DocumentOut.from_document(d) for d in search_news(svc.store, q, limit=limit)]


@router.get("/news/stats")
def stats(svc: Services = Depends(get_services)):
    return get_statistics(svc.store)


@router.get("/news/{doc_id}")
def get_news(doc_id: str, svc: Services = Depends(get_services)):
    doc = svc.store.get(doc_id) or svc.store.get_saved(doc_id)
    if doc is None:
        raise HTTPException(status_code=404, detail="Noticia no encontrada")
    return DocumentOut.from_document(doc)


@router.post("/news/{doc_id}/save")
def save(doc_id: str, svc: Services = Depends(get_services)):
    return result_response(save_document(svc.store, doc_id))


@router.delete("/news/{doc_id}/save")
def unsave(doc_id: str, svc: Services = Depends(get_services)):
    return result_response(unsave_document(svc.store, doc_id))


@router.post("/news/{doc_id}/summary")
def summary(doc_id: str, svc: Services = Depends(get_services)):
    res = summarize_document(svc.store, svc.generation, doc_id)
    return result_response(res, summary=res.value)


@router.get("/saved")
def list_saved(svc: Services = Depends(get_services)):
    return [DocumentOut.from_document(d) for d in svc.store.list_saved()]
