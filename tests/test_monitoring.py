"""
Unit tests for the inference health check
"""
import httpx
import pytest

from studyai.services.monitoring import HealthChecker, check_health


class TestInferenceHealth:
    def test_ok_when_model_listed_with_tag(self, make_inference_client, models_response):
        client = make_inference_client(lambda request: models_response(["llama3.2:latest"]), model="llama3.2")
        report = check_health(client)
        assert report.status == "ok"
        assert report.model == "llama3.2"

    def test_warning_when_model_missing(self, make_inference_client, models_response):
        client = make_inference_client(lambda request: models_response(["mistral:latest"]), model="llama3.2")
        report = check_health(client)
        assert report.status == "warning"
        assert "ollama pull llama3.2" in report.message

    def test_tagged_config_matches_on_base_name(self, make_inference_client, models_response):
        client = make_inference_client(lambda request: models_response(["llama3.2:latest"]), model="llama3.2:3b")
        assert check_health(client).status == "ok"

    def test_similar_prefix_is_not_a_match(self, make_inference_client, models_response):
        client = make_inference_client(lambda request: models_response(["llama3.2:latest"]), model="llama3")
        assert check_health(client).status == "warning"

    def test_error_when_unreachable(self, make_inference_client):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        report = check_health(make_inference_client(handler))
        assert report.status == "error"
        assert report.model is None

    def test_never_generates(self, make_inference_client, models_response):
        """The health check only touches the model catalog"""
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return models_response(["llama3.2:latest"])

        check_health(make_inference_client(handler))
        assert paths == ["/v1/models"]


class TestHealthChecker:
    def test_overall_status(self, db_session, fake_inference):
        status = HealthChecker().get_health_status(db_session, fake_inference)
        assert status["status"] == "healthy"
        assert status["checks"]["database"]["status"] == "healthy"
        assert status["checks"]["inference"]["status"] == "healthy"
        assert "system_metrics" in status

    @pytest.mark.parametrize("models", [["mistral:latest"], []])
    def test_missing_model_is_unhealthy(self, db_session, fake_inference, models):
        fake_inference.models = models
        status = HealthChecker().get_health_status(db_session, fake_inference)
        assert status["status"] == "unhealthy"
        assert status["unhealthy_components"] == ["inference"]
