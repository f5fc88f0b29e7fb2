"""LLM Core 顶层包。

该包提供面向 OpenAI 兼容接口的请求编排核心，
包括配置加载、领域模型、双方言适配、文件附件、
历史保留策略、连通性探测与价格估算等能力。
"""

from llm_core.orchestration import execute_with_history_policy, ping
from llm_core.providers import ClientConfig, create_client

__all__ = ["ClientConfig", "create_client", "execute_with_history_policy", "ping"]
