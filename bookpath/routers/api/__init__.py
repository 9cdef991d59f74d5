from fastapi import APIRouter

from bookpath.routers.api.health import router as health_router
from bookpath.routers.api.search import router as search_router

router = APIRouter(prefix="/api")
router.include_router(search_router)
router.include_router(health_router)
