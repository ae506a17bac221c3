from __future__ import annotations
import logging
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import MissingParameter, SchemaMismatch
from .extraction import ResultShape, parse_result
from .levels import get_level_profile
from .profiles import ConfigResolver, resolve_provider_config
from .prompts import (
	build_chat_prompt,
	build_evaluation_prompt,
	build_material_prompt,
	build_topics_prompt,
)
from .providers import ProviderDispatcher
from .schemas import (
	ChatReply,
	ChatRequest,
	EvaluationRequest,
	EvaluationResult,
	ProviderConfig,
	RawProviderResponse,
	TopicMaterial,
)
from .settings import settings
from .validation import validate_provider_config

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)

TOPIC_COUNT = 3


def _coerce(model: Type[ResultT], value: Any, shape: ResultShape) -> ResultT:
	try:
		return model.model_validate(value)
	except ValidationError as err:
		logger.warning("SchemaMismatch: %s failed validation: %s", shape.value, err.errors(include_url=False))
		raise SchemaMismatch(shape.value, value, reason=str(err)) from err


class TutorService:
	"""Runs the prompt -> provider -> extraction -> normalization pipeline for each operation.

	``resolvers`` are tried in order to find the provider config for a call.
	"""

	def __init__(
		self,
		dispatcher: ProviderDispatcher,
		resolvers: List[ConfigResolver],
		*,
		strict_schema: Optional[bool] = None,
	) -> None:
		self.dispatcher = dispatcher
		self.resolvers = resolvers
		self.strict_schema = settings.strict_schema if strict_schema is None else strict_schema

	async def send(self, prompt: str, image: Optional[str] = None) -> RawProviderResponse:
		if not (prompt or "").strip():
			raise MissingParameter("prompt is required")
		config = resolve_provider_config(self.resolvers)
		return await self.dispatcher.dispatch(config, prompt, image)

	async def _run(self, prompt: str, shape: ResultShape, image: Optional[str] = None) -> Any:
		response = await self.send(prompt, image)
		return parse_result(response.text, shape, strict=self.strict_schema)

	async def generate_topics(self, level: str) -> List[str]:
		profile = get_level_profile(level)
		value = await self._run(build_topics_prompt(profile), ResultShape.TOPIC_LIST)
		if not isinstance(value, list):
			raise SchemaMismatch(ResultShape.TOPIC_LIST.value, value)
		topics = [str(t).strip() for t in value if isinstance(t, (str, int, float)) and str(t).strip()]
		if not topics:
			raise SchemaMismatch(ResultShape.TOPIC_LIST.value, value)
		return topics[:TOPIC_COUNT]

	async def generate_material(self, level: str, topic: str, output_language: str = "en") -> TopicMaterial:
		profile = get_level_profile(level)
		prompt = build_material_prompt(profile, topic, output_language)
		value = await self._run(prompt, ResultShape.TOPIC_MATERIAL)
		return _coerce(TopicMaterial, value, ResultShape.TOPIC_MATERIAL)

	async def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
		profile = get_level_profile(request.level)
		text = request.submission_text or ""
		if len(text) > settings.max_submission_chars:
			request = request.model_copy(update={"submission_text": text[: settings.max_submission_chars]})
		prompt = build_evaluation_prompt(profile, request)
		value = await self._run(prompt, ResultShape.EVALUATION, request.image)
		return _coerce(EvaluationResult, value, ResultShape.EVALUATION)

	async def chat(self, request: ChatRequest) -> ChatReply:
		profile = get_level_profile(request.level)
		value = await self._run(build_chat_prompt(profile, request), ResultShape.CHAT_REPLY)
		return _coerce(ChatReply, value, ResultShape.CHAT_REPLY)

	async def validate_config(self, config: ProviderConfig) -> None:
		await validate_provider_config(self.dispatcher, config)
