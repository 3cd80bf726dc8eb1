from fastapi import APIRouter
from app.api.endpoints import query, rest

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(rest.router)
api_router.include_router(query.router)
