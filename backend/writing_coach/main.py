import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .db import Base, engine
from .errors import TutorError
from .levels import list_levels
from .profiles import default_provider_config
from .settings import settings
from .routers import ai
from .routers import config
from .routers import writing
from . import models  # noqa: F401  registers tables on Base

logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Writing Coach API")
app.include_router(ai.router)
app.include_router(writing.router)
app.include_router(config.router)


@app.exception_handler(TutorError)
async def tutor_error_handler(request: Request, exc: TutorError):
	if exc.status_code >= 500:
		logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
	return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.get("/info")
def root():
	return {"status": "ok", "default_provider_configured": default_provider_config() is not None}


@app.get("/levels")
def levels():
	return [
		{"code": p.code, "name": p.name, "word_count": p.word_count.label}
		for p in list_levels()
	]


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
