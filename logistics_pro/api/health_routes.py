import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from logistics_pro.utils.timezones import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    try:
        await request.app.state.db.ping()
    except Exception as exc:
        logger.error("Health check failed: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"success": False, "status": "ERROR", "database": "disconnected"},
        )
    return {"success": True, "status": "OK", "database": "connected", "timestamp": utcnow().isoformat()}
