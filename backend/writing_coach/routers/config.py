from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session
from typing import Optional

from ..db import get_db
from ..dependencies import get_dispatcher
from ..errors import MissingParameter
from ..profiles import ProfileStore
from ..providers import ProviderDispatcher
from ..schemas import ProviderConfig
from ..validation import validate_provider_config

router = APIRouter(prefix="/config", tags=["config"])


class ConfigRequest(BaseModel):
	username: Optional[str] = None
	config: Optional[ProviderConfig] = None


@router.post("/test")
async def test_config(req: ConfigRequest, dispatcher: ProviderDispatcher = Depends(get_dispatcher)):
	if req.config is None:
		raise MissingParameter("config is required")
	await validate_provider_config(dispatcher, req.config)
	return {"ok": True}


@router.post("")
async def save_config(
	req: ConfigRequest,
	db: Session = Depends(get_db),
	dispatcher: ProviderDispatcher = Depends(get_dispatcher),
):
	username = (req.username or "").strip()
	if not username or req.config is None:
		raise MissingParameter("Username and config are required")
	# Nothing is written unless the provider accepted the config
	await validate_provider_config(dispatcher, req.config)
	ProfileStore(db).save_config(username, req.config)
	return {"message": "Config saved successfully", "config": {"provider": req.config.provider, "model": req.config.model}}
