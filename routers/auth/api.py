from fastapi import APIRouter

from . import accounts, profile

router = APIRouter()
router.include_router(profile.router)
router.include_router(accounts.router)
