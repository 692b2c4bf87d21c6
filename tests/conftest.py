from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient
from google.genai import types

from market_relay.config import Settings
from market_relay.main import create_app
from market_relay.services.llm_service import GeminiService
from market_relay.services.media_client import MediaClient

API_BASE = "https://provider.test/v1beta"


class ProviderStub:
    """httpx.MockTransport handler recording every outbound REST request."""

    def __init__(self):
        self.requests = []
        self.response = httpx.Response(200, json={})

    def __call__(self, request: httpx.Request):
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def settings():
    return Settings(gemini_api_key="test-key", api_base_url=API_BASE)


@pytest.fixture
def generate_content():
    return AsyncMock()


@pytest.fixture
def provider():
    return ProviderStub()


@pytest.fixture
def gemini_response():
    def _build(text, queries=None):
        metadata = types.GroundingMetadata(web_search_queries=queries) if queries else None
        return types.GenerateContentResponse(
            candidates=[
                types.Candidate(
                    content=types.Content(role="model", parts=[types.Part(text=text)]),
                    grounding_metadata=metadata,
                )
            ]
        )

    return _build


@pytest.fixture
def client(settings, generate_content, provider):
    fake_genai = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
    gemini = GeminiService(fake_genai)
    media = MediaClient(
        httpx.AsyncClient(transport=httpx.MockTransport(provider)),
        settings.gemini_api_key,
        settings.api_base_url,
    )
    app = create_app(settings, gemini_service=gemini, media_client=media)
    with TestClient(app) as test_client:
        yield test_client
