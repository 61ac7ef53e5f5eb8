from fastapi import APIRouter

from . import topup, wallet

router = APIRouter()
router.include_router(wallet.router)
router.include_router(topup.router)
