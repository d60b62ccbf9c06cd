# newsdesk/routers/ingest.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status

from .. import config
from ..logging_setup import get_logger
from ..services import Services, get_services, result_response
from ..workflow import run_refresh, sweep_old_news

logger = get_logger("newsdesk.routes.ingest")

router = APIRouter(prefix="/ingest", tags=["Admin Ingest"])

# --- Simple API key gate ---
def require_admin(x_api_key: Optional[str] = Header(default=None)) -> None:
    expected = config.ADMIN_API_KEY
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server misconfigured: ADMIN_API_KEY not set."
        )
    if x_api_key != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

@router.post("/run-once", summary="Fetch every active source now")
def run_once(svc: Services = Depends(get_services), _: None = Depends(require_admin)):
    logger.info("Manual refresh invoked")
    res = run_refresh(svc.store, svc.orchestrator)
    return result_response(res, stored=res.value)

@router.post("/sweep", summary="Drop unsaved news older than the retention window")
def sweep(svc: Services = Depends(get_services), _: None = Depends(require_admin)):
    logger.info("Manual sweep invoked")
    res = sweep_old_news(svc.store)
    return result_response(res, deleted=res.value)
