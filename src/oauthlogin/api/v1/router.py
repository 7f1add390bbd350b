from fastapi import APIRouter

from oauthlogin.api.v1.public import oauth
from oauthlogin.core.health import check_database, check_redis

api_router = APIRouter()

api_router.include_router(oauth.router, prefix="/oauth", tags=["oauth"])


@api_router.get("/health")
async def health_check() -> dict[str, str]:
    try:
        await check_database()
        await check_redis()
        return {"status": "healthy"}
    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}
