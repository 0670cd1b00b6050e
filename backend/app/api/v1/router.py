from fastapi import APIRouter

from app.api.v1 import auth, import_routes, visits

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(import_routes.router, prefix="/import", tags=["import"])
api_router.include_router(visits.router, prefix="/visits", tags=["visits"])
