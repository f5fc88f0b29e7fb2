"""文件附件扩展。

仅 Responses 方言支持多段结构化 input，因此附件能力只在该方言下提供：
OpenAIClient.file_attachments() 在 responses 方言下返回 FileAttachmentExtension，
在 chat_completions 方言下返回 None。

请求构造规则（REPLAY_USER_TURNS_ONLY）：

- 历史中只有 user 角色的消息会被回放，每条作为一个只含 input_text 的 user 消息；
  assistant / system / developer 消息一律不回放，避免多段 input 的角色/类型边界问题。
- 最后一项是 user 消息，内容依次为：每个文件引用一个 input_file 段，
  然后是携带新 prompt 的 input_text 段。

历史只记录文本 prompt 与助手回复，文件引用只对本次请求有效。
"""

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from llm_core.domain.exceptions import ValidationError
from llm_core.domain.models import CompletionRequest, CompletionResult

if TYPE_CHECKING:
    from llm_core.providers.openai_client import OpenAIClient
    from llm_core.providers.responses import ResponsesDialect


DEFAULT_UPLOAD_PURPOSE = "user_data"
ALLOWED_UPLOAD_SUFFIXES = (".pdf",)

# 文件模式下的历史回放策略：只回放 user 消息
REPLAY_USER_TURNS_ONLY = "user_turns_only"


def input_text(text: str) -> Dict[str, str]:
    return {"type": "input_text", "text": text or ""}


def input_file(file_id: str) -> Dict[str, str]:
    return {"type": "input_file", "file_id": file_id}


def clean_file_ids(file_ids: Optional[List[str]]) -> List[str]:
    """去除空白引用并 trim。"""

    return [fid.strip() for fid in (file_ids or []) if fid and fid.strip()]


def validate_upload_path(file_path: Union[str, Path, None]) -> Path:
    """上传前的本地校验，任何一项失败都在发起网络请求之前抛出。"""

    if file_path is None or not str(file_path).strip():
        raise ValidationError(code="EMPTY_PATH", message="file path is empty")
    path = Path(str(file_path).strip()).expanduser()
    if not path.is_file():
        raise ValidationError(code="FILE_NOT_FOUND", message=f"File not found: {path}", path=str(path))
    if path.suffix.lower() not in ALLOWED_UPLOAD_SUFFIXES:
        raise ValidationError(
            code="UNSUPPORTED_FILE_TYPE",
            message="Only PDF files are supported",
            path=str(path),
        )
    return path


class FileAttachmentExtension:
    """在 Responses 方言之上组合文件引用的可选能力。"""

    replay_policy = REPLAY_USER_TURNS_ONLY

    def __init__(self, client: "OpenAIClient", dialect: "ResponsesDialect"):
        self._client = client
        self._dialect = dialect

    async def complete_with_files(
        self,
        prompt: str,
        instructions: Optional[str],
        file_ids: Optional[List[str]],
    ) -> CompletionResult:
        """带文件引用的补全；没有有效引用时退化为纯文本调用。"""

        ids = clean_file_ids(file_ids)
        if not ids:
            return await self._client.complete(prompt, instructions)
        req = self._client.build_request(prompt, instructions, ids)
        payload = self.build_payload(req)
        return await self._client.send(payload, self._dialect, req.prompt)

    def build_payload(self, req: CompletionRequest) -> Dict[str, Any]:
        items: List[Dict[str, Any]] = []
        for turn in req.history:
            if turn.role != "user" or turn.is_blank:
                continue
            items.append({"role": "user", "content": [input_text(turn.content)]})

        parts = [input_file(fid) for fid in clean_file_ids(req.file_ids)]
        parts.append(input_text(req.prompt))
        items.append({"role": "user", "content": parts})
        return self._dialect.build_body(req, items)
