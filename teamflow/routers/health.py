from fastapi import APIRouter, Request

router = APIRouter()

@router.get("/z")
def healthz(request: Request):
    # Check si l'API est up + providers IA chargés
    gateway = getattr(request.app.state, "ai_gateway", None)
    return {
        "status": "ok",
        "ai_providers": gateway.provider_names if gateway else [],
    }
