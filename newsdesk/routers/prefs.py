from fastapi import APIRouter, Depends, HTTPException

from ..logging_setup import get_logger
from ..models import Category, Weekday
from ..schema import DayPreferenceIn, ValueIn, VoiceIn
from ..services import Services, get_services, result_response
from ..store import API_KEY_KEY

logger = get_logger("newsdesk.routes.prefs")

router = APIRouter(prefix="/prefs", tags=["Preferences"])


@router.get("")
def get_prefs(svc: Services = Depends(get_services)):
    return svc.config.get()


@router.get("/active-today")
def active_today(svc: Services = Depends(get_services)):
    return {"categories": svc.config.active_categories_for_today()}


@router.put("/days/{day}")
def set_day(day: str, body: DayPreferenceIn, svc: Services = Depends(get_services)):
    weekday = Weekday.parse(day)
    if weekday is None:
        raise HTTPException(status_code=422, detail=f"Día desconocido: {day}")
    logger.info(f"Setting {weekday.value}: {[c.value for c in body.categories]} exclusive={body.exclusive_mode}")
    return result_response(svc.config.set_day_preference(weekday, body.categories, body.exclusive_mode))


@router.post("/excluded")
def exclude(body: ValueIn, svc: Services = Depends(get_services)):
    category = Category.parse(body.value)
    if category is None:
        raise HTTPException(status_code=422, detail=f"Categoría desconocida: {body.value}")
    return result_response(svc.config.exclude_category(category))


@router.post("/keywords")
def follow_keyword(body: ValueIn, svc: Services = Depends(get_services)):
    return result_response(svc.config.follow_keyword(body.value))


@router.post("/sources")
def prefer_source(body: ValueIn, svc: Services = Depends(get_services)):
    return result_response(svc.config.prefer_source(body.value))


@router.put("/api-key")
def set_api_key(body: ValueIn, svc: Services = Depends(get_services)):
    """Persist the generation key and switch the running client over to it."""
    res = svc.store.set_setting(API_KEY_KEY, body.value.strip())
    if res.ok:
        svc.generation.reconfigure(body.value.strip())
    return result_response(res, configured=svc.generation.is_configured())


@router.get("/settings")
def get_settings(svc: Services = Depends(get_services)):
    return {
        "first_run": svc.store.is_first_run(),
        "voice_mode": svc.store.voice_mode(),
        "voice_rate": svc.store.voice_rate(),
        "generation_configured": svc.generation.is_configured(),
    }


@router.put("/voice")
def set_voice(body: VoiceIn, svc: Services = Depends(get_services)):
    if body.enabled is not None:
        res = svc.store.set_voice_mode(body.enabled)
        if not res.ok:
            return result_response(res)
    if body.rate is not None:
        res = svc.store.set_voice_rate(body.rate)
        if not res.ok:
            return result_response(res)
    return {"ok": True, "voice_mode": svc.store.voice_mode(), "voice_rate": svc.store.voice_rate()}
