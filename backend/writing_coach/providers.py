from __future__ import annotations
import asyncio
import logging
import httpx
from typing import Any, Dict, List, Optional, Tuple
from .errors import (
	ParseError,
	ProviderHttpError,
	ProviderNotConfigured,
	ProviderTimeout,
	TransportError,
	TutorError,
	UnsupportedProvider,
)
from .images import as_data_uri, split_data_uri
from .schemas import ProviderConfig, RawProviderResponse
from .settings import settings

logger = logging.getLogger(__name__)

GEMINI = "gemini"
OPENAI = "openai"
SUPPORTED_PROVIDERS = (GEMINI, OPENAI)


def extract_response_text(payload: Any) -> str:
	"""Pull the model's text out of either provider's response body."""
	if not isinstance(payload, dict):
		return ""
	candidates = payload.get("candidates")
	if isinstance(candidates, list) and candidates:
		content = (candidates[0] or {}).get("content") or {}
		parts = content.get("parts") or []
		texts = [p.get("text") for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
		if texts:
			return "".join(texts)
	choices = payload.get("choices")
	if isinstance(choices, list) and choices:
		message = (choices[0] or {}).get("message") or {}
		content = message.get("content")
		if isinstance(content, str):
			return content
	return ""


class ProviderDispatcher:
	"""Sends one prompt (and optional image) to Gemini or OpenAI and returns the raw answer.

	Holds an httpx client between calls but no per-request state. Close it with ``aclose()``.
	"""

	def __init__(
		self,
		*,
		timeout: Optional[float] = None,
		max_retries: Optional[int] = None,
		retry_backoff: Optional[float] = None,
		gemini_base_url: Optional[str] = None,
		openai_base_url: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.timeout = timeout if timeout is not None else settings.provider_timeout_seconds
		self.max_retries = max(0, max_retries if max_retries is not None else settings.provider_max_retries)
		self.retry_backoff = retry_backoff if retry_backoff is not None else settings.provider_retry_backoff_seconds
		self.gemini_base_url = (gemini_base_url or settings.gemini_base_url).rstrip("/")
		self.openai_base_url = openai_base_url or settings.openai_base_url
		self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

	async def dispatch(self, config: ProviderConfig, prompt: str, image: Optional[str] = None) -> RawProviderResponse:
		url, params, headers, payload = self.build_request(config, prompt, image)
		logger.info("dispatching to %s model=%s image=%s", config.provider, config.model, bool(image))
		attempt = 0
		while True:
			try:
				return await self._send_once(config, url, params, headers, payload)
			except TutorError as err:
				if not err.retryable or attempt >= self.max_retries:
					raise
				attempt += 1
				logger.warning("%s call failed (%s), retry %d/%d", config.provider, err.message, attempt, self.max_retries)
				await asyncio.sleep(self.retry_backoff * attempt)

	def build_request(
		self,
		config: ProviderConfig,
		prompt: str,
		image: Optional[str] = None,
	) -> Tuple[str, Dict[str, str], Dict[str, str], Dict[str, Any]]:
		provider = (config.provider or "").strip().lower()
		if provider not in SUPPORTED_PROVIDERS:
			raise UnsupportedProvider(config.provider)
		if not config.is_usable():
			raise ProviderNotConfigured()
		headers: Dict[str, str] = {"Content-Type": "application/json"}
		if provider == GEMINI:
			# Google AI Studio (Generative Language API), key in the query string
			url = f"{self.gemini_base_url}/{config.model.strip()}:generateContent"
			return url, {"key": config.api_key}, headers, self._gemini_payload(prompt, image)
		headers["Authorization"] = f"Bearer {config.api_key}"
		return self.openai_base_url, {}, headers, self._openai_payload(config.model.strip(), prompt, image)

	@staticmethod
	def _gemini_payload(prompt: str, image: Optional[str]) -> Dict[str, Any]:
		parts: List[Dict[str, Any]] = [{"text": prompt}]
		if image:
			mime, data = split_data_uri(image)
			parts.append({"inline_data": {"mime_type": mime, "data": data}})
		return {
			"contents": [{"parts": parts}],
			"generationConfig": {"responseMimeType": "application/json"},
		}

	@staticmethod
	def _openai_payload(model: str, prompt: str, image: Optional[str]) -> Dict[str, Any]:
		content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
		if image:
			content.append({"type": "image_url", "image_url": {"url": as_data_uri(image)}})
		return {
			"model": model,
			"messages": [{"role": "user", "content": content}],
			"response_format": {"type": "json_object"},
		}

	async def _send_once(
		self,
		config: ProviderConfig,
		url: str,
		params: Dict[str, str],
		headers: Dict[str, str],
		payload: Dict[str, Any],
	) -> RawProviderResponse:
		try:
			r = await self._client.post(url, params=params or None, headers=headers, json=payload)
		except httpx.TimeoutException as err:
			raise ProviderTimeout(details=str(err) or type(err).__name__) from err
		except httpx.RequestError as err:
			raise TransportError(details=str(err) or type(err).__name__) from err
		if not r.is_success:
			try:
				body: Any = r.json()
			except ValueError:
				body = r.text
			logger.warning("%s returned HTTP %d", config.provider, r.status_code)
			raise ProviderHttpError(r.status_code, body)
		try:
			data = r.json()
		except ValueError as err:
			raise ParseError(r.text) from err
		return RawProviderResponse(status_code=r.status_code, ok=True, payload=data, text=extract_response_text(data))

	async def aclose(self) -> None:
		await self._client.aclose()

	async def __aenter__(self) -> "ProviderDispatcher":
		return self

	async def __aexit__(self, *exc_info: Any) -> None:
		await self.aclose()
