"""LLM Provider 集成层。

该包下的模块负责：
- 定义客户端与方言的抽象接口 (base)。
- 维护 Provider 默认端点与显式客户端配置 (registry)。
- 两种线协议方言 (chat_completions、responses) 与文件附件扩展 (files)。
- OpenAI 客户端实现 (openai_client)。
"""

from typing import Optional

from llm_core.infrastructure.logging.logger import logger
from llm_core.providers.base import CompletionClient
from llm_core.providers.openai_client import OpenAIClient
from llm_core.providers.registry import API_VARIANTS, ClientConfig, PROVIDER_REGISTRY


def create_client(config: Optional[ClientConfig]) -> Optional[OpenAIClient]:
    """根据配置创建客户端。

    配置缺失、Provider 不支持、凭证为空或方言未知时返回 None 并记录日志，
    调用方据此进入“无客户端”状态，而不是捕获异常。
    """

    if config is None:
        logger.error("Client config is missing, cannot create client")
        return None
    provider = (config.provider or "").strip().lower()
    if provider not in PROVIDER_REGISTRY:
        logger.error(f"Unsupported LLM provider: {config.provider!r}")
        return None
    if config.api_variant not in API_VARIANTS:
        logger.error(f"Unsupported API variant: {config.api_variant!r}")
        return None
    if not (config.api_key or "").strip():
        logger.error("API key is missing, cannot create client")
        return None
    return OpenAIClient(config)


__all__ = ["ClientConfig", "CompletionClient", "OpenAIClient", "create_client"]
