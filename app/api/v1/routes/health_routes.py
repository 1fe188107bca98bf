from fastapi import APIRouter
from app.api.v1.controllers.health_controller import health_check

router = APIRouter()

router.get("/health", tags=["Health"])(health_check)
