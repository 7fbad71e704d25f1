"""
Shared fixtures: an in-memory database, a scripted inference stand-in, and a
real OpenAI client wired to an httpx mock transport.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from studyai import models  # noqa: F401
from studyai.config import InferenceSettings
from studyai.schemas import ModelDescriptor
from studyai.services.inference import InferenceClient


class FakeInference:
    """Stands in for InferenceClient: replays a canned response and records calls."""

    def __init__(self, response="", model="llama3.2", models=("llama3.2:latest",)):
        self.response = response
        self.error = None
        self.settings = InferenceSettings(model=model)
        self.models = list(models)
        self.calls = []
        self.list_error = None

    @property
    def model(self):
        return self.settings.model

    def generate(self, prompt, temperature=0.7, top_p=0.9, max_tokens=2000):
        self.calls.append({
            "prompt": prompt,
            "temperature": temperature,
            "top_p": top_p,
            "max_tokens": max_tokens,
        })
        if self.error is not None:
            raise self.error
        return self.response

    def list_models(self, timeout=None):
        if self.list_error is not None:
            raise self.list_error
        return [ModelDescriptor(name=name) for name in self.models]


def completion_payload(text):
    return {
        "id": "cmpl-test",
        "object": "text_completion",
        "created": 1700000000,
        "model": "llama3.2",
        "choices": [{"index": 0, "text": text, "finish_reason": "stop", "logprobs": None}],
    }


def models_payload(names):
    return {
        "object": "list",
        "data": [
            {"id": name, "object": "model", "created": 1700000000, "owned_by": "library"}
            for name in names
        ],
    }


@pytest.fixture
def fake_inference():
    return FakeInference()


@pytest.fixture
def make_inference_client():
    """Build a real InferenceClient whose HTTP traffic goes to ``handler``."""
    def _make(handler, model="llama3.2"):
        settings = InferenceSettings(base_url="http://ollama.test", model=model, api_key="test")
        transport = httpx.MockTransport(handler)
        return InferenceClient(settings, http_client=httpx.Client(transport=transport))
    return _make


@pytest.fixture
def completion_response():
    def _respond(text):
        return httpx.Response(200, json=completion_payload(text))
    return _respond


@pytest.fixture
def models_response():
    def _respond(names):
        return httpx.Response(200, json=models_payload(names))
    return _respond


@pytest.fixture
def request_json():
    def _read(request: httpx.Request):
        return json.loads(request.content)
    return _read


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def api(engine, fake_inference):
    from studyai.db import get_session
    from studyai.deps import get_inference_client
    from studyai.main import app

    def _session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_inference_client] = lambda: fake_inference
    yield TestClient(app)
    app.dependency_overrides.clear()
