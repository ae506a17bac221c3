from __future__ import annotations
from typing import Any, Dict, Optional


class TutorError(Exception):
	"""Base class for every failure the evaluation pipeline reports to a caller."""

	status_code: int = 500
	retryable: bool = False

	def __init__(self, message: str, *, details: Any = None) -> None:
		super().__init__(message)
		self.message = message
		self.details = details

	def to_payload(self) -> Dict[str, Any]:
		payload: Dict[str, Any] = {"error": self.message}
		if self.details is not None:
			payload["details"] = self.details
		return payload


class MissingParameter(TutorError):
	status_code = 400


class InvalidParameter(TutorError):
	status_code = 400


class ProviderNotConfigured(TutorError):
	status_code = 400

	def __init__(self, message: str = "AI API Key not configured") -> None:
		super().__init__(message)


class UnsupportedProvider(TutorError):
	status_code = 400

	def __init__(self, provider: str) -> None:
		super().__init__("Unsupported provider", details={"provider": provider})
		self.provider = provider


class ProviderHttpError(TutorError):
	"""The provider answered with a non-2xx status. ``body`` is its error payload, untouched."""

	def __init__(self, status: int, body: Any) -> None:
		super().__init__("AI Provider Error", details=body)
		self.status = status
		self.body = body
		# upstream 3xx is answered as 502, the original status stays in the payload
		self.status_code = status if status >= 400 else 502
		# 4xx, 429 included, is never retried
		self.retryable = status >= 500

	def to_payload(self) -> Dict[str, Any]:
		payload = super().to_payload()
		payload["status"] = self.status
		return payload

	def provider_message(self) -> Optional[str]:
		body = self.body
		if isinstance(body, list) and body:
			body = body[0]
		if not isinstance(body, dict):
			return None
		err = body.get("error")
		if isinstance(err, dict):
			message = err.get("message")
			if isinstance(message, str) and message.strip():
				return message.strip()
		if isinstance(err, str) and err.strip():
			return err.strip()
		return None


class TransportError(TutorError):
	status_code = 502
	retryable = True

	def __init__(self, message: str = "AI request failed", *, details: Any = None) -> None:
		super().__init__(message, details=details)


class ProviderTimeout(TransportError):
	status_code = 504

	def __init__(self, details: Any = None) -> None:
		super().__init__("AI request timed out", details=details)


class ParseError(TutorError):
	status_code = 502

	def __init__(self, raw_text: str) -> None:
		super().__init__("Failed to parse AI response as JSON", details={"raw": raw_text})
		self.raw_text = raw_text


class SchemaMismatch(TutorError):
	status_code = 502

	def __init__(self, shape: str, raw_value: Any, *, reason: Optional[str] = None) -> None:
		details: Dict[str, Any] = {"expected": shape, "raw": raw_value}
		if reason:
			details["reason"] = reason
		super().__init__("AI response did not match the expected shape", details=details)
		self.shape = shape
		self.raw_value = raw_value


class ConfigValidationFailed(TutorError):
	status_code = 400

	def __init__(self, message: str, *, status: Optional[int] = None) -> None:
		super().__init__(message)
		if status is not None:
			self.status_code = status
