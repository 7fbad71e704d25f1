"""
Tests for the AI generation rate limit
"""
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from studyai.middleware.rate_limit import ai_generation_limit, limiter


def _generation_app():
    app = FastAPI()
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.post("/summary")
    @ai_generation_limit("2/minute")
    def summary(request: Request):
        return {"summary": "s"}

    @app.post("/quiz")
    @ai_generation_limit("2/minute")
    def quiz(request: Request):
        return {"questions": []}

    return app


class TestGenerationLimit:
    def test_routes_share_one_budget(self):
        """Calls to different generation routes count against the same budget"""
        client = TestClient(_generation_app())
        assert client.post("/summary").status_code == 200
        assert client.post("/quiz").status_code == 200
        assert client.post("/summary").status_code == 429
        assert client.post("/quiz").status_code == 429
