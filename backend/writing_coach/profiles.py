from __future__ import annotations
import json
from typing import Any, Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from .errors import ProviderNotConfigured
from .models import UserAccount, UserProfile
from .schemas import ProviderConfig
from .settings import settings

ConfigResolver = Callable[[], Optional[ProviderConfig]]

_PROFILE_FIELDS = ("language", "level", "points", "badges")


def _row_config(row: Any) -> Optional[ProviderConfig]:
	if row is None or not row.provider:
		return None
	return ProviderConfig(provider=row.provider, model=row.model or "", api_key=row.api_key or "")


def _load_badges(raw: Optional[str]) -> List[str]:
	try:
		data = json.loads(raw or "[]")
	except ValueError:
		return []
	return [str(b) for b in data] if isinstance(data, list) else []


class ProfileStore:
	"""Key-value style access to user profiles, keyed by username."""

	def __init__(self, db: Session) -> None:
		self.db = db

	def get(self, username: str) -> Optional[Dict[str, Any]]:
		row = self.db.get(UserProfile, username)
		if row is None:
			return None
		config = _row_config(row)
		return {
			"username": row.username,
			"language": row.language,
			"level": row.level,
			"points": row.points,
			"badges": _load_badges(row.badges_json),
			"config": config.model_dump(by_alias=True) if config else None,
		}

	def put(self, username: str, profile: Dict[str, Any]) -> Dict[str, Any]:
		"""Merge ``profile`` into the stored record; keys left out keep their current value."""
		row = self._profile_row(username)
		for field in _PROFILE_FIELDS:
			if field not in profile:
				continue
			value = profile[field]
			# level may be cleared; the others fall back to their current value
			if value is None and field != "level":
				continue
			if field == "badges":
				row.badges_json = json.dumps(list(value))
			else:
				setattr(row, field, value)
		if "config" in profile and profile["config"] is not None:
			config = profile["config"]
			if not isinstance(config, ProviderConfig):
				config = ProviderConfig.model_validate(config)
			self._apply_config(row, config)
		self.db.add(row)
		self.db.commit()
		return self.get(username) or {}

	def get_profile_config(self, username: str) -> Optional[ProviderConfig]:
		return _row_config(self.db.get(UserProfile, username))

	def get_legacy_config(self, username: str) -> Optional[ProviderConfig]:
		return _row_config(self.db.get(UserAccount, username))

	def save_config(self, username: str, config: ProviderConfig) -> None:
		"""Write the config to both the legacy user record and the profile, creating either if missing."""
		account = self.db.get(UserAccount, username) or UserAccount(username=username)
		self._apply_config(account, config)
		self.db.add(account)
		profile = self._profile_row(username)
		self._apply_config(profile, config)
		self.db.add(profile)
		self.db.commit()

	def config_resolvers(self, username: Optional[str], override: Optional[ProviderConfig] = None) -> List[ConfigResolver]:
		resolvers: List[ConfigResolver] = [lambda: override]
		if username:
			resolvers.append(lambda: self.get_profile_config(username))
			resolvers.append(lambda: self.get_legacy_config(username))
		resolvers.append(default_provider_config)
		return resolvers

	def _profile_row(self, username: str) -> UserProfile:
		row = self.db.get(UserProfile, username)
		if row is None:
			row = UserProfile(username=username, language="en", level=None, points=0, badges_json="[]")
		return row

	@staticmethod
	def _apply_config(row: Any, config: ProviderConfig) -> None:
		row.provider = config.provider
		row.model = config.model
		row.api_key = config.api_key


def default_provider_config() -> Optional[ProviderConfig]:
	if not settings.default_api_key:
		return None
	return ProviderConfig(provider=settings.default_provider, model=settings.default_model, api_key=settings.default_api_key)


def resolve_provider_config(resolvers: Iterable[ConfigResolver]) -> ProviderConfig:
	"""Return the first usable config from ``resolvers``, tried in order."""
	for resolver in resolvers:
		config = resolver()
		if config is not None and config.is_usable():
			return config
	raise ProviderNotConfigured()
