from fastapi import APIRouter

from app.providers import check_providers

router = APIRouter()


@router.get("/")
def health_check():
    return {"status": "healthy"}


@router.get("/providers")
async def provider_health():
    return await check_providers()
