from fastapi import APIRouter

from . import team, users

router = APIRouter()
router.include_router(users.router)
router.include_router(team.router)
