import pytest

from main import app
from routers.chat import TONE_INSTRUCTIONS, get_assistant_service


class FakeGemini:
    def __init__(self, reply="Track every expense for a month.", chunks=None, error=None):
        self.reply = reply
        self.chunks = chunks or []
        self.error = error
        self.calls = []

    async def generate_response(self, system_instruction, messages, max_output_tokens=None):
        self.calls.append((system_instruction, messages, max_output_tokens))
        if self.error:
            raise Exception(self.error)
        return {"content": self.reply, "usage_metadata": {"total_tokens": 12}}

    async def generate_streaming_response(self, system_instruction, messages, max_output_tokens=None):
        self.calls.append((system_instruction, messages, max_output_tokens))
        for chunk in self.chunks:
            yield chunk
        if self.error:
            raise Exception(self.error)


@pytest.fixture
def use_service(client):
    def _use(service):
        app.dependency_overrides[get_assistant_service] = lambda: service
        return service
    return _use


@pytest.mark.parametrize("body", [{"message": ""}, {"message": "   "}, {}])
def test_blank_message_is_rejected(client, use_service, body):
    use_service(FakeGemini())

    response = client.post("/chat", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Please enter a valid message."}


def test_malformed_body_is_rejected(client, use_service):
    use_service(FakeGemini())

    response = client.post("/chat", content=b"{oops", headers={"content-type": "application/json"})

    assert response.status_code == 400
    assert "error" in response.json()


def test_buffered_reply(client, use_service):
    service = use_service(FakeGemini())

    response = client.post("/chat", json={
        "message": " How do I start saving? ",
        "systemPrompt": "You are a thrifty coach.",
        "tone": "friendly",
        "maxTokens": 200,
        "history": [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello!"}],
    })

    assert response.status_code == 200
    assert response.json() == {"reply": "Track every expense for a month.", "model_usage": {"total_tokens": 12}}
    system_instruction, messages, max_tokens = service.calls[0]
    assert system_instruction.startswith("You are a thrifty coach.")
    assert TONE_INSTRUCTIONS["friendly"] in system_instruction
    assert messages[-1] == {"role": "user", "content": "How do I start saving?"}
    assert len(messages) == 3
    assert max_tokens == 200


def test_default_system_prompt_is_used(client, use_service):
    service = use_service(FakeGemini())

    client.post("/chat", json={"message": "Hi"})

    assert service.calls[0][0].startswith("You are a helpful personal finance assistant.")


def test_streamed_reply_is_plain_text(client, use_service):
    use_service(FakeGemini(chunks=["Save ", "more, ", "spend less."]))

    response = client.post("/chat", json={"message": "Tips?", "stream": True})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Save more, spend less."


def test_stream_failure_is_reported_in_body(client, use_service):
    use_service(FakeGemini(chunks=["Partial"], error="quota exceeded"))

    response = client.post("/chat", json={"message": "Tips?", "stream": True})

    assert response.text.startswith("Partial")
    assert "⚠️ quota exceeded" in response.text


def test_generation_failure_returns_error(client, use_service):
    use_service(FakeGemini(error="model unavailable"))

    response = client.post("/chat", json={"message": "Tips?"})

    assert response.status_code == 500
    assert response.json() == {"error": "model unavailable"}


def test_unconfigured_assistant(client, use_service):
    use_service(None)

    response = client.post("/chat", json={"message": "Tips?"})

    assert response.status_code == 503
    assert "error" in response.json()
