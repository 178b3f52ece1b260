from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    return {"ok": True}


@router.get("/readyz")
def readyz(request: Request):
    """
    Providers: at least one configured (API key present).
    Models: at least one model bound to a configured provider.
    """
    status = request.app.state.chat_svc.readiness()
    return JSONResponse(status, status_code=200 if status["ready"] else 503)
