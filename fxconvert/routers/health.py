from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "version": request.app.version,
        "cached_responses": len(request.app.state.converter.cache),
    }
