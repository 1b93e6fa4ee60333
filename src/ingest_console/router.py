from fastapi import APIRouter

from ingest_console.routers.ingestion import router as ingestion_router
from ingest_console.routers.webhooks import router as webhooks_router

router = APIRouter()
router.include_router(ingestion_router)
router.include_router(webhooks_router)
