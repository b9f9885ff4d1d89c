from fastapi import FastAPI, APIRouter
from starlette.middleware.cors import CORSMiddleware
import logging

from config import client, db, CORS_ORIGINS
from routes import public, dispatch, realtime
from services.event_logger import drain_pending_events
from services.realtime import notifier


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="TapCard API")

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")


@api_router.get("/health")
async def health():
    return {"status": "ok"}


api_router.include_router(public.router)
api_router.include_router(dispatch.router)
api_router.include_router(realtime.router)

app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def start_lead_notifier():
    notifier.start(db.leads)


@app.on_event("shutdown")
async def shutdown_db_client():
    await notifier.stop()
    await drain_pending_events()
    client.close()
