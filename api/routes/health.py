from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    return {
        "ok": True,
        "catalog": getattr(request.app.state, "catalog_client", None) is not None,
    }
