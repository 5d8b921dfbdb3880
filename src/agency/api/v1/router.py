from fastapi import APIRouter

from src.agency.api.v1 import members

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(members.router)
