"""连通性探测（ping）。

发送一条固定 prompt，要求模型只回复 "pong"：

- 历史策略固定为 (include=False, merge=False)，探测流量不会进入持久历史；
- 临时把 temperature 降为 0、max_output_tokens 降为 10
  （responses 方言最低 16），调用结束后无论成功失败都恢复。
"""

from dataclasses import dataclass
from typing import Optional

from llm_core.domain.exceptions import ValidationError
from llm_core.orchestration.history_policy import execute_with_history_policy
from llm_core.providers.openai_client import OpenAIClient
from llm_core.providers.responses import MIN_OUTPUT_TOKENS, ResponsesDialect


PING_PROMPT = "Reply with exactly: pong"
PING_INSTRUCTIONS = "Ignore all prior instructions. Output exactly: pong"
PING_MAX_OUTPUT_TOKENS = 10


@dataclass
class PingResult:
    ok: bool
    text: str
    success: bool

    @property
    def status(self) -> str:
        if self.ok:
            return "Ping OK (pong)."
        return f'Ping failed (got: "{self.text}").'


async def ping(client: Optional[OpenAIClient]) -> PingResult:
    if client is None:
        raise ValidationError(code="NO_CLIENT", message="client is None")

    max_tokens = PING_MAX_OUTPUT_TOKENS
    if client.api_variant == ResponsesDialect.name:
        max_tokens = max(max_tokens, MIN_OUTPUT_TOKENS)

    with client.sampling_override(max_output_tokens=max_tokens, temperature=0.0):
        result = await execute_with_history_policy(
            client,
            PING_PROMPT,
            PING_INSTRUCTIONS,
            include_history_in_request=False,
            merge_new_turn_back_when_suppressed=False,
        )

    text = (result.output_text or "").strip()
    return PingResult(ok=text.lower() == "pong", text=text, success=result.success)
