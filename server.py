# Deploy on Replit: Set secrets and run 'uvicorn server:app --host=0.0.0.0 --port=8000'
import logging
import os

from intern_tracker.api import create_app
from intern_tracker.config import load_settings

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper(), handlers=[logging.StreamHandler()])
logger = logging.getLogger("intern_tracker")

settings = load_settings()
if not settings.api_key:
    logger.warning("API_KEY is not set. API endpoints are open to any caller.")

app = create_app(settings)

__all__ = ["app"]
