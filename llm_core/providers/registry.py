"""Provider 与模型配置。

本模块集中维护：

- ProviderConfig: 某个 Provider 的默认 base_url 与各端点路径。
- ClientConfig: 构造客户端所需的全部显式配置值（由外部配置层注入）。
- 模型别名表：便于配置里使用 "GPT_4o" 这类枚举风格名称。

核心代码只接收 ClientConfig，不直接读取环境变量或 settings。"""

from dataclasses import dataclass, field
from typing import Dict, Literal, Mapping, Optional

from llm_core.domain.models import FallbackRates, SamplingParams


ApiVariant = Literal["chat_completions", "responses"]
API_VARIANTS = ("chat_completions", "responses")


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    chat_path: str
    responses_path: str
    files_path: str
    default_model: str


OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com",
    chat_path="/v1/chat/completions",
    responses_path="/v1/responses",
    files_path="/v1/files",
    default_model="gpt-5.2",
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "openai": OPENAI_CONFIG,
}


# 枚举风格别名 -> 实际模型 ID
OPENAI_MODEL_ALIASES: Dict[str, str] = {
    "GPT_4_5": "gpt-4.5-preview",
    "GPT_o3_Mini": "o3-mini",
    "GPT_4o": "gpt-4o",
    "GPT_4o_Mini": "gpt-4o-mini",
    "GPT_o1": "o1",
    "GPT_o1_Mini": "o1-mini",
    "GPT_4_Turbo": "gpt-4-turbo",
    "GPT_3_5_Turbo": "gpt-3.5-turbo",
    "GPT_5": "gpt-5",
    "GPT_5_2": "gpt-5.2",
    "GPT_5_Mini": "gpt-5-mini",
    "GPT_5_Nano": "gpt-5-nano",
    "GPT_4_1": "gpt-4.1",
    "GPT_4_1_Mini": "gpt-4.1-mini",
    "GPT_4_1_Nano": "gpt-4.1-nano",
    "GPT_o3": "o3",
    "GPT_o4_Mini": "o4-mini",
    "GPT_o1_Pro": "o1-pro",
}


@dataclass
class ClientConfig:
    """构造 OpenAIClient 所需的显式配置。

    Attributes:
        provider: Provider 名称，用于工厂分发与价格目录查找。
        api_variant: 线协议方言，"chat_completions" 或 "responses"。
        model: 模型 ID 或别名（见 OPENAI_MODEL_ALIASES）。
        api_key: Bearer 凭证；为空时工厂返回 None。
        base_url / chat_path / responses_path / files_path: 为空时取 Provider 默认值。
        http_timeout: 单次请求超时（秒）。
    """

    provider: str = "openai"
    api_variant: ApiVariant = "chat_completions"
    model: str = OPENAI_CONFIG.default_model
    sampling: SamplingParams = field(default_factory=SamplingParams)
    system_instructions: str = "You are a helpful assistant."
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    chat_path: Optional[str] = None
    responses_path: Optional[str] = None
    files_path: Optional[str] = None
    http_timeout: float = 30.0
    fallback_rates: FallbackRates = field(default_factory=FallbackRates)

    def __post_init__(self) -> None:
        self.sampling = self.sampling.clamped()
        self.model = resolve_model_id(self.model)
        if self.http_timeout <= 0:
            self.http_timeout = 30.0


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = (name or "").strip().lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")


def resolve_model_id(model: str) -> str:
    """别名映射为实际模型 ID；未知名称原样返回（去除空白）。"""

    value = (model or "").strip()
    return OPENAI_MODEL_ALIASES.get(value, value) or OPENAI_CONFIG.default_model


def normalize_base_url(base_url: Optional[str], default: str) -> str:
    value = (base_url or "").strip() or default
    return value.rstrip("/")


def normalize_path(path: Optional[str], default: str) -> str:
    value = (path or "").strip() or default
    if not value.startswith("/"):
        value = "/" + value
    return value
