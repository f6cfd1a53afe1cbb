# app/health.py
from fastapi import APIRouter, Depends

from app.config import Settings, get_settings

router = APIRouter()


@router.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {"ok": True, "bookings_configured": bool(settings.bookings_business_id)}
