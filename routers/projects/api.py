from fastapi import APIRouter

from . import admin_projects, investments, projects

router = APIRouter()
router.include_router(projects.router)
router.include_router(investments.router)
router.include_router(admin_projects.router)
