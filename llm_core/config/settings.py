"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。

这里是“外部配置层”：它只负责读取与校验配置值，再通过 to_client_config()
生成显式的 ClientConfig 注入到核心代码中；核心模块不会直接读取 settings。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from llm_core.domain.models import FallbackRates, SamplingParams


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("LLM_CORE_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class Settings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- Provider 相关配置 ----
    default_provider: str = Field(default="openai", description="Provider 名称，目前支持 openai")
    api_variant: Literal["chat_completions", "responses"] = Field(
        default="chat_completions",
        description="线协议方言：chat_completions 或 responses",
    )
    model: str = Field(default="gpt-5.2", description="模型 ID 或别名，如 gpt-4o / GPT_4o")

    openai_api_key: Optional[str] = Field(default=None, description="OpenAI API 密钥")
    openai_base_url: str = Field(default="https://api.openai.com", description="OpenAI API 基础URL")
    openai_chat_endpoint: str = Field(default="/v1/chat/completions", description="Chat Completions 路径")
    openai_responses_endpoint: str = Field(default="/v1/responses", description="Responses 路径")
    openai_files_endpoint: str = Field(default="/v1/files", description="文件上传路径")
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 采样参数 ----
    temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    frequency_penalty: float = Field(default=0.0, ge=-2.0, le=2.0)
    max_output_tokens: int = Field(default=200, ge=1)
    stop_sequences: List[str] = Field(default_factory=list)
    system_instructions: str = Field(default="You are a helpful assistant.")

    # ---- 价格（USD / 1M tokens），价格目录缺失时兜底 ----
    input_usd_per_1m: float = Field(default=0.0, ge=0.0)
    cached_input_usd_per_1m: float = Field(default=0.0, ge=0.0)
    output_usd_per_1m: float = Field(default=0.0, ge=0.0)
    pricing_catalog_file: Optional[str] = Field(default=None, description="价格目录 YAML 路径")
    pricing_tier: Literal["standard", "flex", "priority"] = Field(default="standard")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("openai_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip() or None
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )

    def to_client_config(self):
        """把配置值转换为注入核心的 ClientConfig。"""

        # 避免与 providers 包循环导入
        from llm_core.providers.registry import ClientConfig

        return ClientConfig(
            provider=self.default_provider,
            api_variant=self.api_variant,
            model=self.model,
            sampling=SamplingParams(
                temperature=self.temperature,
                top_p=self.top_p,
                frequency_penalty=self.frequency_penalty,
                max_output_tokens=self.max_output_tokens,
                stop_sequences=list(self.stop_sequences),
            ),
            system_instructions=self.system_instructions,
            api_key=self.openai_api_key,
            base_url=self.openai_base_url,
            chat_path=self.openai_chat_endpoint,
            responses_path=self.openai_responses_endpoint,
            files_path=self.openai_files_endpoint,
            http_timeout=self.http_timeout,
            fallback_rates=FallbackRates(
                input_usd_per_1m=self.input_usd_per_1m,
                cached_input_usd_per_1m=self.cached_input_usd_per_1m,
                output_usd_per_1m=self.output_usd_per_1m,
            ),
        )


settings = Settings()
