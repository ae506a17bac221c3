import asyncio

import httpx
import pytest

from conftest import FakeProvider, gemini_body, openai_body
from writing_coach.errors import (
    ParseError,
    ProviderHttpError,
    ProviderNotConfigured,
    ProviderTimeout,
    TransportError,
    UnsupportedProvider,
)
from writing_coach.profiles import ProfileStore, resolve_provider_config
from writing_coach.providers import extract_response_text
from writing_coach.schemas import ProviderConfig

GEMINI = ProviderConfig(provider="gemini", model="gemini-2.5-flash", api_key="g-key")
OPENAI = ProviderConfig(provider="openai", model="gpt-4o-mini", api_key="o-key")


def _dispatch(fake, config, prompt="Hello", image=None, **kwargs):
    async def run():
        async with fake.dispatcher(**kwargs) as dispatcher:
            return await dispatcher.dispatch(config, prompt, image)

    return asyncio.run(run())


def test_gemini_request_shape():
    fake = FakeProvider((200, gemini_body('{"ok": true}')))
    response = _dispatch(fake, GEMINI, prompt="Grade this")
    request = fake.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert request.url.params["key"] == "g-key"
    assert fake.last_json == {
        "contents": [{"parts": [{"text": "Grade this"}]}],
        "generationConfig": {"responseMimeType": "application/json"},
    }
    assert response.ok and response.status_code == 200
    assert response.text == '{"ok": true}'


def test_openai_request_shape():
    fake = FakeProvider((200, openai_body('{"ok": true}')))
    response = _dispatch(fake, OPENAI, prompt="Grade this")
    request = fake.requests[0]
    assert request.url.host == "api.openai.com"
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["authorization"] == "Bearer o-key"
    assert fake.last_json == {
        "model": "gpt-4o-mini",
        "messages": [{"role": "user", "content": [{"type": "text", "text": "Grade this"}]}],
        "response_format": {"type": "json_object"},
    }
    assert response.text == '{"ok": true}'


def test_gemini_image_prefix_is_stripped():
    fake = FakeProvider((200, gemini_body("{}")))
    _dispatch(fake, GEMINI, image="data:image/png;base64,AAAA")
    parts = fake.last_json["contents"][0]["parts"]
    assert parts[1] == {"inline_data": {"mime_type": "image/png", "data": "AAAA"}}


def test_gemini_bare_base64_defaults_to_jpeg():
    fake = FakeProvider((200, gemini_body("{}")))
    _dispatch(fake, GEMINI, image="AAAA")
    assert fake.last_json["contents"][0]["parts"][1]["inline_data"]["mime_type"] == "image/jpeg"


def test_openai_image_keeps_data_uri():
    fake = FakeProvider((200, openai_body("{}")))
    _dispatch(fake, OPENAI, image="data:image/png;base64,AAAA")
    content = fake.last_json["messages"][0]["content"]
    assert content[1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}}


def test_unsupported_provider_fails_before_any_call():
    fake = FakeProvider((200, {}))
    with pytest.raises(UnsupportedProvider):
        _dispatch(fake, ProviderConfig(provider="claude", model="m", api_key="k"))
    assert fake.requests == []


def test_blank_key_is_not_configured():
    fake = FakeProvider((200, {}))
    with pytest.raises(ProviderNotConfigured):
        _dispatch(fake, ProviderConfig(provider="gemini", model="gemini-2.5-flash", api_key=" "))
    assert fake.requests == []


def test_client_error_is_surfaced_verbatim_and_not_retried():
    body = {"error": {"code": 401, "message": "API key not valid.", "status": "UNAUTHENTICATED"}}
    fake = FakeProvider((401, body))
    with pytest.raises(ProviderHttpError) as excinfo:
        _dispatch(fake, GEMINI, max_retries=3)
    err = excinfo.value
    assert err.status == 401
    assert err.body == body
    assert err.retryable is False
    assert err.to_payload() == {"error": "AI Provider Error", "details": body, "status": 401}
    assert len(fake.requests) == 1


def test_rate_limit_is_not_retried():
    fake = FakeProvider((429, {"error": {"message": "Resource has been exhausted"}}))
    with pytest.raises(ProviderHttpError) as excinfo:
        _dispatch(fake, GEMINI, max_retries=2)
    assert excinfo.value.status_code == 429
    assert excinfo.value.retryable is False
    assert len(fake.requests) == 1


def test_upstream_redirect_is_reported_as_bad_gateway():
    fake = FakeProvider((302, "moved"))
    with pytest.raises(ProviderHttpError) as excinfo:
        _dispatch(fake, OPENAI, max_retries=2)
    err = excinfo.value
    assert err.status_code == 502
    assert err.to_payload()["status"] == 302
    assert len(fake.requests) == 1


def test_server_error_is_retried_then_succeeds():
    fake = FakeProvider((503, {"error": {"message": "overloaded"}}), (200, gemini_body("{}")))
    response = _dispatch(fake, GEMINI, max_retries=2)
    assert response.ok
    assert len(fake.requests) == 2


def test_retries_are_bounded():
    fake = FakeProvider((500, "boom"))
    with pytest.raises(ProviderHttpError) as excinfo:
        _dispatch(fake, OPENAI, max_retries=2)
    assert excinfo.value.body == "boom"
    assert len(fake.requests) == 3


def test_connection_reset_is_transport_error_and_retryable():
    fake = FakeProvider(httpx.ConnectError("connection reset by peer"))
    with pytest.raises(TransportError) as excinfo:
        _dispatch(fake, GEMINI, max_retries=1)
    assert excinfo.value.retryable is True
    assert not isinstance(excinfo.value, ProviderHttpError)
    assert len(fake.requests) == 2


def test_transport_error_then_success():
    fake = FakeProvider(httpx.ConnectError("reset"), (200, openai_body('{"reply": "hi"}')))
    response = _dispatch(fake, OPENAI, max_retries=1)
    assert response.text == '{"reply": "hi"}'


def test_timeout_is_reported_separately():
    fake = FakeProvider(httpx.ReadTimeout("timed out"))
    with pytest.raises(ProviderTimeout) as excinfo:
        _dispatch(fake, GEMINI, max_retries=0)
    assert isinstance(excinfo.value, TransportError)
    assert excinfo.value.status_code == 504


def test_non_json_success_body_is_a_parse_error():
    fake = FakeProvider((200, "<html>proxy page</html>"))
    with pytest.raises(ParseError):
        _dispatch(fake, GEMINI)


def test_extract_response_text_handles_both_shapes_and_garbage():
    assert extract_response_text(gemini_body("a")) == "a"
    assert extract_response_text(openai_body("b")) == "b"
    assert extract_response_text({"candidates": []}) == ""
    assert extract_response_text(None) == ""


def test_profile_config_used_when_no_override(db_session):
    store = ProfileStore(db_session)
    store.put("alice", {"level": "B2", "config": OPENAI})
    assert resolve_provider_config(store.config_resolvers("alice")) == OPENAI


def test_override_wins_over_profile(db_session):
    store = ProfileStore(db_session)
    store.put("alice", {"config": OPENAI})
    assert resolve_provider_config(store.config_resolvers("alice", GEMINI)) == GEMINI


def test_legacy_record_is_last_user_tier(db_session):
    store = ProfileStore(db_session)
    store.save_config("bob", GEMINI)
    store.put("bob", {"config": ProviderConfig(provider="openai", model="", api_key="")})
    assert resolve_provider_config(store.config_resolvers("bob")) == GEMINI


def test_nothing_configured(db_session, monkeypatch):
    from writing_coach import profiles

    monkeypatch.setattr(profiles.settings, "default_api_key", None)
    with pytest.raises(ProviderNotConfigured):
        resolve_provider_config(ProfileStore(db_session).config_resolvers("nobody"))


def test_server_default_is_last_resort(db_session, monkeypatch):
    from writing_coach import profiles

    monkeypatch.setattr(profiles.settings, "default_api_key", "server-key")
    config = resolve_provider_config(ProfileStore(db_session).config_resolvers("nobody"))
    assert config.api_key == "server-key"
