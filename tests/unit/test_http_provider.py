import httpx
import pytest

from config.providers import ProviderRoute
from llm_gateway.errors import ProviderRejected
from llm_gateway.providers import HttpChatProvider, extract_content, preview


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("not json")
        return self._payload


class FakeClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


ROUTE = ProviderRoute(name="openai", base_url="https://api.example.test/v1", model="gpt-test", api_key_env="TEST_AI_KEY")
MESSAGES = [{"role": "user", "content": "hello"}]


def test_posts_openai_payload_with_bearer_token(monkeypatch):
    monkeypatch.setenv("TEST_AI_KEY", "secret")
    client = FakeClient(FakeResponse(payload={"choices": [{"message": {"content": "hi there"}}]}))
    provider = HttpChatProvider(ROUTE, client=client, timeout_s=12.0)

    assert provider.call(MESSAGES, 50, 0.2) == "hi there"
    sent = client.requests[0]
    assert sent["url"] == "https://api.example.test/v1/chat/completions"
    assert sent["headers"]["Authorization"] == "Bearer secret"
    assert sent["json"]["model"] == "gpt-test"
    assert sent["json"]["max_tokens"] == 50
    assert sent["timeout"] == 12.0


def test_missing_api_key_is_rejected(monkeypatch):
    monkeypatch.delenv("TEST_AI_KEY", raising=False)
    provider = HttpChatProvider(ROUTE, client=FakeClient(FakeResponse(payload={})))
    with pytest.raises(ProviderRejected, match="missing credentials"):
        provider.call(MESSAGES, 50, 0.2)


@pytest.mark.parametrize(
    "client, reason",
    [
        (FakeClient(FakeResponse(status_code=503)), "status 503"),
        (FakeClient(FakeResponse(payload=None)), "not JSON"),
        (FakeClient(FakeResponse(payload={"choices": []})), "missing content"),
        (FakeClient(error=httpx.ConnectError("refused")), "transport failed"),
    ],
)
def test_failures_become_provider_rejected(monkeypatch, client, reason):
    monkeypatch.setenv("TEST_AI_KEY", "secret")
    with pytest.raises(ProviderRejected, match=reason):
        HttpChatProvider(ROUTE, client=client).call(MESSAGES, 50, 0.2)


def test_extract_content_accepts_flat_payload():
    assert extract_content("p", {"content": "flat"}) == "flat"


def test_preview_uses_last_non_empty_message():
    messages = [{"role": "user", "content": "first line"}, {"role": "assistant", "content": " "}]
    assert preview(messages) == "first line"
    assert preview([{"role": "user", "content": "x" * 200}], limit=10) == "xxxxxxx..."
