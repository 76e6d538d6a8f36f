from fastapi import APIRouter
from .endpoints.ai_functions import router as ai_functions_router


api_router = APIRouter()

api_router.include_router(ai_functions_router, prefix="/ai-functions", tags=["ai-functions"])
