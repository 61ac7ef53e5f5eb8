from fastapi import APIRouter

from . import tickets

router = APIRouter(tags=["Support"])

router.include_router(tickets.router)
