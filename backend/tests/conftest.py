import json
import sys
from pathlib import Path

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from writing_coach.db import Base  # noqa: E402
from writing_coach import models  # noqa: E402,F401
from writing_coach.providers import ProviderDispatcher  # noqa: E402


def gemini_body(text):
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


def openai_body(text):
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": text}}]}


class FakeProvider:
    """Records outbound requests and answers from a queue of (status, body) pairs or exceptions."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        status, body = item
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def last_json(self):
        return json.loads(self.requests[-1].content)

    def dispatcher(self, **kwargs):
        kwargs.setdefault("retry_backoff", 0)
        return ProviderDispatcher(transport=httpx.MockTransport(self), **kwargs)


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    session = Session()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
