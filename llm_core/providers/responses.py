"""Responses 方言适配器。

本模块负责：

1. 接收统一的 CompletionRequest。
2. 将其转换为 /v1/responses 的请求体：历史与新 prompt 放在 input 列表中，
   指令通过单独的 instructions 字段携带（不插入 system 消息）。
3. 将响应 JSON 解析为统一的 CompletionResult。

Responses 的 schema 会拒绝 frequency_penalty 与 stop（unknown_parameter），
因此这里从不发送这两个字段，而不是发送 null 或默认值。
"""

from typing import Any, Dict, List, Optional

from llm_core.domain.history import replayable_turns
from llm_core.domain.models import CompletionRequest, CompletionResult
from llm_core.providers.chat_completions import token_count


# Responses 接口要求 max_output_tokens >= 16
MIN_OUTPUT_TOKENS = 16


class ResponsesDialect:
    """Responses 线协议。"""

    name = "responses"

    def build_payload(self, req: CompletionRequest) -> Dict[str, Any]:
        items: List[Dict[str, Any]] = []
        for turn in replayable_turns(req.history):
            items.append({"role": turn.role, "content": turn.content})
        items.append({"role": "user", "content": req.prompt or ""})
        return self.build_body(req, items)

    def build_body(self, req: CompletionRequest, input_items: List[Dict[str, Any]]) -> Dict[str, Any]:
        """组装公共字段；文件附件扩展复用此方法，只替换 input。"""

        return {
            "model": req.model,
            "input": input_items,
            "instructions": req.instructions or "",
            "max_output_tokens": req.sampling.max_output_tokens,
            "temperature": req.sampling.temperature,
            "top_p": req.sampling.top_p,
        }

    def parse_response(self, data: Any) -> CompletionResult:
        if not isinstance(data, dict):
            return CompletionResult(success=True)
        usage = data.get("usage") or {}
        input_details = usage.get("input_tokens_details") or {}
        output_details = usage.get("output_tokens_details") or {}
        return CompletionResult(
            success=True,
            output_text=self._extract_text(data),
            input_tokens=token_count(usage.get("input_tokens")),
            cached_input_tokens=token_count(input_details.get("cached_tokens")),
            output_tokens=token_count(usage.get("output_tokens")),
            reasoning_tokens=token_count(output_details.get("reasoning_tokens")),
        )

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> Optional[str]:
        """取第一个 message 类型输出项中第一段非空的 output_text。"""

        for item in data.get("output") or []:
            if not isinstance(item, dict):
                continue
            if str(item.get("type") or "").lower() != "message":
                continue
            for part in item.get("content") or []:
                if not isinstance(part, dict):
                    continue
                if str(part.get("type") or "").lower() != "output_text":
                    continue
                text = part.get("text")
                if isinstance(text, str) and text.strip():
                    return text
        return None
