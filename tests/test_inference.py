"""
Unit tests for the inference client against a mocked HTTP transport
"""
import httpx
import pytest

from studyai.services.errors import EndpointUnavailable, ModelNotFound


class TestGenerate:
    def test_returns_generated_text(self, make_inference_client, completion_response, request_json):
        """A successful call returns the completion text and sends the sampling options"""
        seen = {}

        def handler(request: httpx.Request):
            seen["path"] = request.url.path
            seen["body"] = request_json(request)
            return completion_response("The mitochondria is the powerhouse of the cell.")

        client = make_inference_client(handler)
        text = client.generate("Explain cells", temperature=0.5, top_p=0.9, max_tokens=500)

        assert text == "The mitochondria is the powerhouse of the cell."
        assert seen["path"] == "/v1/completions"
        body = seen["body"]
        assert body["model"] == "llama3.2"
        assert body["prompt"] == "Explain cells"
        assert body["stream"] is False
        assert body["temperature"] == 0.5
        assert body["top_p"] == 0.9
        assert body["max_tokens"] == 500

    def test_connection_refused(self, make_inference_client):
        def handler(request):
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        client = make_inference_client(handler)
        with pytest.raises(EndpointUnavailable) as exc:
            client.generate("hi")
        assert exc.value.reason == EndpointUnavailable.CONNECTION_REFUSED
        assert "ollama serve" in exc.value.hint

    def test_timeout(self, make_inference_client):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = make_inference_client(handler)
        with pytest.raises(EndpointUnavailable) as exc:
            client.generate("hi")
        assert exc.value.reason == EndpointUnavailable.TIMEOUT

    def test_model_not_found(self, make_inference_client):
        def handler(request):
            return httpx.Response(404, json={"error": {"message": 'model "llama3.2" not found'}})

        client = make_inference_client(handler)
        with pytest.raises(ModelNotFound) as exc:
            client.generate("hi")
        assert exc.value.model == "llama3.2"
        assert exc.value.hint == "Pull it with: ollama pull llama3.2"

    def test_server_error_is_unavailable(self, make_inference_client):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(500, json={"error": {"message": "boom"}})

        client = make_inference_client(handler)
        with pytest.raises(EndpointUnavailable) as exc:
            client.generate("hi")
        assert exc.value.reason == EndpointUnavailable.UNAVAILABLE
        # No retries at this layer
        assert len(calls) == 1

    def test_empty_choices(self, make_inference_client):
        def handler(request):
            return httpx.Response(200, json={
                "id": "x", "object": "text_completion", "created": 0, "model": "llama3.2", "choices": [],
            })

        client = make_inference_client(handler)
        with pytest.raises(EndpointUnavailable):
            client.generate("hi")


class TestListModels:
    def test_lists_catalog(self, make_inference_client, models_response):
        def handler(request):
            assert request.url.path == "/v1/models"
            return models_response(["llama3.2:latest", "mistral:7b"])

        models = make_inference_client(handler).list_models()
        assert [m.name for m in models] == ["llama3.2:latest", "mistral:7b"]
        assert models[0].owned_by == "library"

    def test_failure_is_unavailable(self, make_inference_client):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(EndpointUnavailable) as exc:
            make_inference_client(handler).list_models()
        assert str(exc.value) == "Failed to fetch models"

    def test_catalog_call_is_bounded(self, make_inference_client, models_response):
        """Listing uses the short health timeout unless told otherwise"""
        seen = []

        def handler(request):
            seen.append(request.extensions["timeout"]["read"])
            return models_response(["llama3.2:latest"])

        client = make_inference_client(handler)
        client.list_models()
        client.list_models(timeout=2.0)
        assert seen == [client.settings.health_timeout, 2.0]
