from fastapi import APIRouter
from khata.api.v1 import routes
#  versioned routers are mounted here, main.py mounts this under /api
api_router = APIRouter()

api_router.include_router(
    routes.router,
    prefix="/v1",
    tags=["khata router"]
)
