from __future__ import annotations
import re
from typing import Tuple

from .errors import InvalidParameter

DEFAULT_IMAGE_MIME = "image/jpeg"

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w-]+=[\w.-]+)*;base64,(?P<data>.*)$", re.DOTALL)
_BASE64 = re.compile(r"^[A-Za-z0-9+/=\s_-]+$")


def split_data_uri(image: str) -> Tuple[str, str]:
	"""Return (mime_type, base64 data) for a data URI or a bare base64 string.

	Bare base64 (and data URIs without a media type) are reported as JPEG.
	"""
	value = (image or "").strip()
	match = _DATA_URI.match(value)
	if match:
		mime = match.group("mime") or DEFAULT_IMAGE_MIME
		data = match.group("data").strip()
	else:
		mime, data = DEFAULT_IMAGE_MIME, value
	if not data or not _BASE64.match(data):
		raise InvalidParameter("image must be a base64 data URI")
	return mime, data


def as_data_uri(image: str) -> str:
	"""Return the image as a data URI, leaving an existing data URI untouched."""
	value = (image or "").strip()
	if value.startswith("data:"):
		split_data_uri(value)
		return value
	mime, data = split_data_uri(value)
	return f"data:{mime};base64,{data}"
