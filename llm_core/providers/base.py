"""Provider 抽象接口。

上层（历史策略执行器、服务层）不直接依赖具体的 HTTP 细节，而是依赖这里的协议：

- WireDialect: 一种线协议方言，负责 CompletionRequest -> JSON 请求体，
  以及 JSON 响应体 -> CompletionResult。
- CompletionClient: 持有会话历史并执行补全调用的客户端。
- FileAttachmentCapability: 可选能力，支持在请求中附带已上传文件。

客户端通过 file_attachments() 显式返回能力对象（不支持时返回 None），
调用方据此选择带文件或纯文本路径。
"""

from typing import Any, Dict, List, Optional, Protocol

from llm_core.domain.history import ConversationHistory
from llm_core.domain.models import CompletionRequest, CompletionResult, SamplingParams


class WireDialect(Protocol):
    """线协议方言。

    - name: 方言名称，用于日志。
    - build_payload(req): 只输出该方言 schema 接受的字段。
    - parse_response(data): 映射用量字段并抽取文本；形状异常时 output_text 为 None。
    """

    name: str

    def build_payload(self, req: CompletionRequest) -> Dict[str, Any]:
        ...

    def parse_response(self, data: Any) -> CompletionResult:
        ...


class FileAttachmentCapability(Protocol):
    async def complete_with_files(
        self,
        prompt: str,
        instructions: Optional[str],
        file_ids: Optional[List[str]],
    ) -> CompletionResult:
        ...


class CompletionClient(Protocol):
    """补全客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/价格目录查找。
    - model / sampling / system_instructions: 当前生效的配置值。
    - history: 客户端独占的会话历史。
    - complete(prompt, instructions): 执行一次纯文本补全。
    - file_attachments(): 返回文件附件能力，不支持时返回 None。
    """

    name: str
    model: str
    sampling: SamplingParams
    system_instructions: str
    history: ConversationHistory

    async def complete(self, prompt: str, instructions: Optional[str] = None) -> CompletionResult:
        ...

    def file_attachments(self) -> Optional[FileAttachmentCapability]:
        ...
