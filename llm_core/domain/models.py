"""统一的对话与结果数据模型。

本模块定义了两种线协议（chat completions / responses）之间共享的标准数据结构：

- ConversationTurn: 一条不可变的对话消息（system/user/assistant/developer）。
- SamplingParams: 采样参数，附带统一的取值裁剪规则。
- CompletionRequest: 一次调用的完整输入快照（仅在调用期间存在）。
- CompletionResult: 从 Provider 解析后的统一响应结果。
- FileUploadResult: 文件上传成功后返回的引用信息。

所有方言适配器都只依赖这些模型，并负责在各自的 JSON 与这些模型之间做转换。
"""

from dataclasses import dataclass, field, replace
from typing import List, Literal, Optional, Tuple

from llm_core.domain.exceptions import ValidationError


# 消息角色（与 OpenAI 的 role 字段对应）
Role = Literal["system", "user", "assistant", "developer"]
ROLES: Tuple[str, ...] = ("system", "user", "assistant", "developer")

# 不参与历史回放的角色：指令由 instructions / system 消息单独携带
INSTRUCTION_ROLES = frozenset({"system", "developer"})


def normalize_role(role: Optional[str]) -> str:
    """去除空白并转小写；未知角色抛出 ValidationError。"""

    value = (role or "").strip().lower()
    if value not in ROLES:
        raise ValidationError(code="INVALID_ROLE", message=f"Unsupported role: {role!r}")
    return value


@dataclass(frozen=True)
class ConversationTurn:
    """一条对话消息，创建后不可修改。"""

    role: Role
    content: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", normalize_role(self.role))
        object.__setattr__(self, "content", self.content or "")

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()


@dataclass
class SamplingParams:
    """采样参数。

    不同方言接受的字段子集不同，由各自的 build_payload 决定发送哪些字段；
    这里只负责保存数值与统一裁剪。
    """

    temperature: float = 1.0
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    max_output_tokens: int = 200
    stop_sequences: List[str] = field(default_factory=list)

    def clamped(self) -> "SamplingParams":
        """返回裁剪后的副本：temperature∈[0,2]、top_p∈[0,1]、
        frequency_penalty∈[-2,2]、max_output_tokens≥1。"""

        return SamplingParams(
            temperature=min(max(float(self.temperature), 0.0), 2.0),
            top_p=min(max(float(self.top_p), 0.0), 1.0),
            frequency_penalty=min(max(float(self.frequency_penalty), -2.0), 2.0),
            max_output_tokens=max(1, int(self.max_output_tokens)),
            stop_sequences=[s for s in (self.stop_sequences or []) if s],
        )

    def copy(self) -> "SamplingParams":
        return replace(self, stop_sequences=list(self.stop_sequences))


@dataclass
class CompletionRequest:
    """一次补全调用的输入快照。

    history 是调用时刻历史的独立副本，方言只读取它，不会回写。
    """

    model: str
    sampling: SamplingParams
    instructions: str
    history: List[ConversationTurn]
    prompt: str
    file_ids: List[str] = field(default_factory=list)


@dataclass
class CompletionResult:
    """一次补全调用的统一结果。

    - success: 调用是否成功（HTTP 2xx 且响应体为合法 JSON）。
      成功但模型未产出文本时 output_text 为 None，调用方据此区分
      “成功但为空”和“调用失败”。
    - cached_input_tokens 始终满足 0 ≤ cached ≤ input_tokens。
    """

    success: bool
    output_text: Optional[str] = None
    input_tokens: int = 0
    cached_input_tokens: int = 0
    output_tokens: int = 0
    reasoning_tokens: int = 0

    def __post_init__(self) -> None:
        self.input_tokens = max(0, int(self.input_tokens or 0))
        self.cached_input_tokens = min(max(0, int(self.cached_input_tokens or 0)), self.input_tokens)
        self.output_tokens = max(0, int(self.output_tokens or 0))
        self.reasoning_tokens = max(0, int(self.reasoning_tokens or 0))

    @classmethod
    def empty(cls) -> "CompletionResult":
        """传输失败时返回的结果：无文本、全零用量。"""

        return cls(success=False)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens + self.reasoning_tokens


@dataclass
class FileUploadResult:
    """上传成功后返回的不透明文件引用。"""

    file_id: str
    filename: str
    bytes: int = 0


@dataclass
class FallbackRates:
    """客户端级别的兜底价格（USD / 1M tokens），价格目录无可用条目时使用。"""

    input_usd_per_1m: float = 0.0
    cached_input_usd_per_1m: float = 0.0
    output_usd_per_1m: float = 0.0
