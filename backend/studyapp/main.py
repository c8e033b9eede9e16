import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .cleanup import PeriodicCleanup
from .db import Base, engine, ensure_schema
from .onboarding import registry
from .settings import settings
from .routers import courses, onboarding, profile, quiz

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	Base.metadata.create_all(bind=engine)
	ensure_schema()
	cleanup = PeriodicCleanup(registry)
	cleanup.start()
	logger.info("Study API started")
	try:
		yield
	finally:
		await cleanup.stop()


app = FastAPI(title="Study Platform API", lifespan=lifespan)
app.include_router(profile.router)
app.include_router(onboarding.router)
app.include_router(quiz.router)
app.include_router(courses.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}
