from __future__ import annotations
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class WordCountRange(BaseModel):
	model_config = ConfigDict(frozen=True)

	min: int
	max: int
	label: str


class LevelProfile(BaseModel):
	"""Grading persona and strictness for one proficiency tier. Built once at import time."""

	model_config = ConfigDict(frozen=True)

	code: str
	name: str
	system_role: str
	vocabulary_constraint: str
	correction_focus: tuple[str, ...]
	tone_instruction: str
	feedback_template: str
	word_count: WordCountRange


class ProviderConfig(BaseModel):
	# provider is a plain string so unknown kinds reach the dispatcher and fail there
	provider: str
	model: str = ""
	api_key: str = Field(default="", alias="apiKey")

	model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

	def is_usable(self) -> bool:
		return bool((self.model or "").strip()) and bool((self.api_key or "").strip())


class Requirements(BaseModel):
	goal: Optional[str] = None
	scope: Optional[str] = None
	style: Optional[str] = None
	keywords: List[str] = Field(default_factory=list)
	structure: Optional[str] = None


class EvaluationRequest(BaseModel):
	level: str
	mode: Literal["sentence", "essay"] = "essay"
	topic: str
	submission_text: str = ""
	image: Optional[str] = None
	output_language: str = "en"
	requirements: Optional[Requirements] = None


class ChatMessage(BaseModel):
	role: Literal["user", "assistant"]
	content: str


class ChatRequest(BaseModel):
	level: str
	original: str
	correction: str
	question: str
	history: List[ChatMessage] = Field(default_factory=list)
	output_language: str = "en"


class RawProviderResponse(BaseModel):
	status_code: int
	ok: bool
	payload: Any = None
	text: str = ""


# ---- Normalized results. Field names follow the JSON the providers are asked for. ----

class TopicMaterial(BaseModel):
	topic: str
	introduction: str
	sampleEssay: str
	analysis: str
	requirements: Optional[Requirements] = None


class CorrectionItem(BaseModel):
	original: str
	correction: str
	explanation: str


class RequirementCheck(BaseModel):
	met: bool
	feedback: str


class EvaluationResult(BaseModel):
	score: float
	generalFeedback: str
	detailedCorrections: List[CorrectionItem] = Field(default_factory=list)
	improvedVersion: str
	handwritingScore: Optional[float] = None
	handwritingComment: Optional[str] = None
	transcribedText: Optional[str] = None
	requirementCheck: Optional[RequirementCheck] = None


class ChatReply(BaseModel):
	reply: str
