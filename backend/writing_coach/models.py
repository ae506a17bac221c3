from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text
from .db import Base


class UserAccount(Base):
	"""Legacy per-user record. Older clients stored the AI config here only."""
	__tablename__ = "user_accounts"
	username = Column(String(128), primary_key=True, index=True)
	provider = Column(String(32), nullable=True)
	model = Column(String(128), nullable=True)
	api_key = Column(String(512), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class UserProfile(Base):
	__tablename__ = "user_profiles"
	username = Column(String(128), primary_key=True, index=True)
	language = Column(String(8), default="en", nullable=False)
	level = Column(String(32), nullable=True)
	points = Column(Integer, default=0, nullable=False)
	badges_json = Column(Text, default="[]", nullable=False)  # JSON list of badge ids
	provider = Column(String(32), nullable=True)
	model = Column(String(128), nullable=True)
	api_key = Column(String(512), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
