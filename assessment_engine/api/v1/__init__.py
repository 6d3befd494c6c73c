"""API v1 router."""
from fastapi import APIRouter

from assessment_engine.api.v1 import attempts, results

api_router = APIRouter()

api_router.include_router(attempts.router, prefix="/attempts", tags=["Attempts"])
api_router.include_router(results.router, prefix="/tests", tags=["Results"])
