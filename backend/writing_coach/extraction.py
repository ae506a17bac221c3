from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from .errors import ParseError, SchemaMismatch

logger = logging.getLogger(__name__)

# Fenced block with or without a language tag
_FENCE = re.compile(r"```[\w+-]*[ \t]*\r?\n?([\s\S]*?)```")


def _loads(candidate: str) -> tuple[bool, Any]:
	try:
		return True, json.loads(candidate)
	except ValueError:
		return False, None


def _bracket_spans(text: str) -> List[str]:
	"""Greedy spans from the first opening bracket to the last matching closer, earliest start first."""
	spans = []
	for opener, closer in (("{", "}"), ("[", "]")):
		first = text.find(opener)
		last = text.rfind(closer)
		if first != -1 and last > first:
			spans.append((first, text[first : last + 1]))
	return [span for _, span in sorted(spans)]


def extract_json(text: Optional[str]) -> Any:
	"""Recover a JSON value from free-form provider output.

	Tries, stopping at the first success:
	1. the trimmed text as-is
	2. the interior of the first fenced code block
	3. the greedy span from the first ``{``/``[`` to the last ``}``/``]``

	Raises:
		ParseError: carrying the original text when nothing parses
	"""
	raw = text or ""
	stripped = raw.strip()
	if stripped:
		ok, value = _loads(stripped)
		if ok:
			return value
	fence = _FENCE.search(raw)
	if fence:
		ok, value = _loads(fence.group(1).strip())
		if ok:
			return value
	for span in _bracket_spans(raw):
		ok, value = _loads(span)
		if ok:
			return value
	logger.warning("no JSON recoverable from provider output: %.200r", raw)
	raise ParseError(raw)


class ResultShape(str, Enum):
	TOPIC_LIST = "topic_list"
	TOPIC_MATERIAL = "topic_material"
	EVALUATION = "evaluation"
	CHAT_REPLY = "chat_reply"


@dataclass(frozen=True)
class Matched:
	shape: ResultShape
	value: Any


@dataclass(frozen=True)
class Unmatched:
	shape: ResultShape
	raw: Any


NormalizedValue = Union[Matched, Unmatched]


def _is_number(value: Any) -> bool:
	return isinstance(value, (int, float)) and not isinstance(value, bool)


def _match_result_payload(candidate: Any) -> Optional[Any]:
	# Evaluation results and learning material share one structural test
	if not isinstance(candidate, dict):
		return None
	if isinstance(candidate.get("sampleEssay"), str) or _is_number(candidate.get("score")):
		return candidate
	return None


def _match_topic_list(candidate: Any) -> Optional[Any]:
	if isinstance(candidate, list) and all(isinstance(item, str) for item in candidate):
		return candidate
	if isinstance(candidate, dict):
		arrays = [v for v in candidate.values() if isinstance(v, list)]
		if len(arrays) == 1:
			return arrays[0]
	return None


def _match_chat_reply(candidate: Any) -> Optional[Any]:
	if isinstance(candidate, dict) and isinstance(candidate.get("reply"), str):
		return candidate
	return None


DISCRIMINATORS: Dict[ResultShape, Callable[[Any], Optional[Any]]] = {
	ResultShape.TOPIC_LIST: _match_topic_list,
	ResultShape.TOPIC_MATERIAL: _match_result_payload,
	ResultShape.EVALUATION: _match_result_payload,
	ResultShape.CHAT_REPLY: _match_chat_reply,
}


def _candidates(value: Any) -> Iterator[Any]:
	yield value
	if isinstance(value, dict):
		# One level only
		yield from value.values()
	elif isinstance(value, list) and value:
		yield value[0]


def normalize_result(value: Any, shape: ResultShape) -> NormalizedValue:
	"""Find the usable payload inside ``value`` even when the provider wrapped it under some key."""
	discriminate = DISCRIMINATORS[shape]
	for candidate in _candidates(value):
		found = discriminate(candidate)
		if found is not None:
			return Matched(shape, found)
	return Unmatched(shape, value)


def unwrap_result(value: Any, shape: ResultShape, *, strict: bool = False) -> Any:
	"""Return the matched payload, or the original value unchanged when nothing matched.

	With ``strict`` an unmatched value raises SchemaMismatch instead of passing through.
	"""
	result = normalize_result(value, shape)
	if isinstance(result, Matched):
		return result.value
	logger.warning("SchemaMismatch: no %s candidate in provider output: %.200r", shape.value, value)
	if strict:
		raise SchemaMismatch(shape.value, value)
	return result.raw


def parse_result(text: Optional[str], shape: ResultShape, *, strict: bool = False) -> Any:
	return unwrap_result(extract_json(text), shape, strict=strict)
