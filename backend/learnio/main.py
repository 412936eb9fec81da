import logging
from typing import Dict

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .logging_config import configure_logging
from .onboarding_routes import router as onboarding_router
from .session_routes import router as session_router


configure_logging()
logger = logging.getLogger(__name__)
app = FastAPI(title="Learnio Client Core", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

settings_snapshot = get_settings()
logger.info("Client core starting with auth URL: %s", settings_snapshot.auth_base_url)
logger.info("Storage mode: %s", settings_snapshot.storage_mode)
logger.info("Auth API key configured: %s", bool(settings_snapshot.auth_api_key))


@app.get("/healthz")
def health(settings: Settings = Depends(get_settings)) -> Dict[str, str]:
    return {"status": "ok", "storage": settings.storage_mode}


app.include_router(session_router)
app.include_router(onboarding_router)
