from __future__ import annotations
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies import get_dispatcher
from ..errors import MissingParameter
from ..profiles import ProfileStore
from ..providers import ProviderDispatcher
from ..schemas import (
	ChatReply,
	ChatRequest,
	EvaluationRequest,
	EvaluationResult,
	ProviderConfig,
	TopicMaterial,
)
from ..service import TutorService


router = APIRouter(prefix="/writing", tags=["writing"])


class TopicsRequest(BaseModel):
	username: Optional[str] = None
	level: str
	config: Optional[ProviderConfig] = None


class TopicsResponse(BaseModel):
	topics: List[str]


class MaterialRequest(BaseModel):
	username: Optional[str] = None
	level: str
	topic: str
	output_language: str = "en"
	config: Optional[ProviderConfig] = None


class EvaluateRequest(EvaluationRequest):
	username: Optional[str] = None
	config: Optional[ProviderConfig] = None


class ChatBody(ChatRequest):
	username: Optional[str] = None
	config: Optional[ProviderConfig] = None


def _service(username: Optional[str], config: Optional[ProviderConfig], db: Session, dispatcher: ProviderDispatcher) -> TutorService:
	username = (username or "").strip()
	if not username:
		raise MissingParameter("username is required")
	return TutorService(dispatcher, ProfileStore(db).config_resolvers(username, config))


@router.post("/topics", response_model=TopicsResponse)
async def topics(req: TopicsRequest, db: Session = Depends(get_db), dispatcher: ProviderDispatcher = Depends(get_dispatcher)):
	service = _service(req.username, req.config, db, dispatcher)
	return TopicsResponse(topics=await service.generate_topics(req.level))


@router.post("/material", response_model=TopicMaterial)
async def material(req: MaterialRequest, db: Session = Depends(get_db), dispatcher: ProviderDispatcher = Depends(get_dispatcher)):
	service = _service(req.username, req.config, db, dispatcher)
	return await service.generate_material(req.level, req.topic, req.output_language)


@router.post("/evaluate", response_model=EvaluationResult)
async def evaluate(req: EvaluateRequest, db: Session = Depends(get_db), dispatcher: ProviderDispatcher = Depends(get_dispatcher)):
	service = _service(req.username, req.config, db, dispatcher)
	request = EvaluationRequest.model_validate(req.model_dump(exclude={"username", "config"}))
	return await service.evaluate(request)


@router.post("/chat", response_model=ChatReply)
async def chat(req: ChatBody, db: Session = Depends(get_db), dispatcher: ProviderDispatcher = Depends(get_dispatcher)):
	service = _service(req.username, req.config, db, dispatcher)
	request = ChatRequest.model_validate(req.model_dump(exclude={"username", "config"}))
	return await service.chat(request)
