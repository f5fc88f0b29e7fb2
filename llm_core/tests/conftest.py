from typing import Any, Dict, List, Optional

import pytest

from llm_core.domain.models import SamplingParams
from llm_core.providers.openai_client import OpenAIClient
from llm_core.providers.registry import ClientConfig


INVALID_JSON = object()


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else ("" if payload is INVALID_JSON else str(payload))

    def json(self):
        if self._payload is INVALID_JSON:
            raise ValueError("Expecting value")
        return self._payload


class FakeHttp:
    """按顺序返回预设响应，并记录每一次 post 调用。"""

    def __init__(self):
        self.responses: List[Any] = []
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *items: Any) -> "FakeHttp":
        self.responses.extend(items)
        return self

    @property
    def last_json(self) -> Dict[str, Any]:
        return self.calls[-1]["json"]

    def client_class(self):
        recorder = self

        class Client:
            def __init__(self, *a, **kw):
                self.kwargs = kw

            async def __aenter__(self):
                return self

            async def __aexit__(self, *a):
                return False

            async def post(self, url, json=None, data=None, files=None, headers=None, **_):
                recorder.calls.append(
                    {"url": url, "json": json, "data": data, "files": files, "headers": headers or {}}
                )
                if not recorder.responses:
                    raise AssertionError("unexpected request")
                item = recorder.responses.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item

        return Client


@pytest.fixture
def fake_http(monkeypatch):
    http = FakeHttp()
    monkeypatch.setattr("httpx.AsyncClient", http.client_class())
    return http


def chat_body(text: Optional[str] = "ok", prompt_tokens=10, cached=0, completion_tokens=5, reasoning=0):
    return {
        "choices": [{"message": {"role": "assistant", "content": text}, "finish_reason": "stop"}],
        "usage": {
            "prompt_tokens": prompt_tokens,
            "prompt_tokens_details": {"cached_tokens": cached},
            "completion_tokens": completion_tokens,
            "completion_tokens_details": {"reasoning_tokens": reasoning},
            "total_tokens": prompt_tokens + completion_tokens,
        },
    }


def responses_body(text: Optional[str] = "ok", input_tokens=10, cached=0, output_tokens=5, reasoning=0):
    content = [{"type": "output_text", "text": text}] if text is not None else []
    return {
        "output": [
            {"type": "reasoning", "summary": []},
            {"type": "message", "role": "assistant", "content": content},
        ],
        "usage": {
            "input_tokens": input_tokens,
            "input_tokens_details": {"cached_tokens": cached},
            "output_tokens": output_tokens,
            "output_tokens_details": {"reasoning_tokens": reasoning},
            "total_tokens": input_tokens + output_tokens,
        },
    }


def make_config(api_variant: str = "chat_completions", **overrides) -> ClientConfig:
    params = dict(
        api_variant=api_variant,
        model="gpt-4o",
        api_key="sk-test-0123456789",
        base_url="https://llm.example.com/",
        sampling=SamplingParams(temperature=0.5, top_p=0.9, frequency_penalty=0.3, max_output_tokens=64),
        system_instructions="Be brief.",
    )
    params.update(overrides)
    return ClientConfig(**params)


@pytest.fixture
def chat_client() -> OpenAIClient:
    return OpenAIClient(make_config("chat_completions"))


@pytest.fixture
def responses_client() -> OpenAIClient:
    return OpenAIClient(make_config("responses"))
