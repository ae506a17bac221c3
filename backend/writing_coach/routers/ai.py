from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies import get_dispatcher
from ..errors import MissingParameter
from ..profiles import ProfileStore
from ..providers import ProviderDispatcher
from ..schemas import ProviderConfig
from ..service import TutorService

router = APIRouter(tags=["ai"])

class GenerateRequest(BaseModel):
	username: Optional[str] = None
	prompt: Optional[str] = None
	image: Optional[str] = None
	config: Optional[ProviderConfig] = None

@router.post("/evaluate")
async def evaluate(
	req: GenerateRequest,
	db: Session = Depends(get_db),
	dispatcher: ProviderDispatcher = Depends(get_dispatcher),
):
	"""Forward a ready-made prompt and return the provider's JSON body unchanged."""
	if not (req.username or "").strip() or not (req.prompt or "").strip():
		raise MissingParameter("Username and prompt are required")
	store = ProfileStore(db)
	service = TutorService(dispatcher, store.config_resolvers(req.username, req.config))
	response = await service.send(req.prompt, req.image)
	return response.payload
