"""Chat Completions 方言适配器。

- URL: {base_url}/v1/chat/completions
- 认证: Authorization: Bearer <api_key>

请求体：model/messages/temperature/top_p/max_completion_tokens/frequency_penalty，
stop 仅在存在停止序列时发送。指令作为第一条 system 消息携带。
"""

from typing import Any, Dict, List, Optional

from llm_core.domain.history import replayable_turns
from llm_core.domain.models import CompletionRequest, CompletionResult


class ChatCompletionsDialect:
    """Chat Completions 线协议。"""

    name = "chat_completions"

    def build_payload(self, req: CompletionRequest) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [{"role": "system", "content": req.instructions or ""}]
        for turn in replayable_turns(req.history):
            messages.append({"role": turn.role, "content": turn.content})
        messages.append({"role": "user", "content": req.prompt or ""})

        sampling = req.sampling
        payload: Dict[str, Any] = {
            "model": req.model,
            "messages": messages,
            "temperature": sampling.temperature,
            "top_p": sampling.top_p,
            "max_completion_tokens": sampling.max_output_tokens,
            "frequency_penalty": sampling.frequency_penalty,
        }
        if sampling.stop_sequences:
            payload["stop"] = list(sampling.stop_sequences)
        return payload

    def parse_response(self, data: Any) -> CompletionResult:
        if not isinstance(data, dict):
            return CompletionResult(success=True)
        usage = data.get("usage") or {}
        prompt_details = usage.get("prompt_tokens_details") or {}
        completion_details = usage.get("completion_tokens_details") or {}
        return CompletionResult(
            success=True,
            output_text=self._extract_text(data),
            input_tokens=token_count(usage.get("prompt_tokens")),
            cached_input_tokens=token_count(prompt_details.get("cached_tokens")),
            output_tokens=token_count(usage.get("completion_tokens")),
            reasoning_tokens=token_count(completion_details.get("reasoning_tokens")),
        )

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> Optional[str]:
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message") or {}
        content = message.get("content")
        return content if isinstance(content, str) else None


def token_count(raw: Any) -> int:
    try:
        return max(0, int(raw or 0))
    except (TypeError, ValueError):
        return 0
