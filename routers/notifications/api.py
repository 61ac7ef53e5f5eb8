from fastapi import APIRouter

from . import notifications

router = APIRouter()

router.include_router(notifications.router)
