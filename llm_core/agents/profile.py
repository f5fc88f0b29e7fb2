"""Agent 配置档案。

一个 AgentProfile 把以下内容组合在一起：

- 名称 / ID；
- 专用指令文本（优先于客户端的 system_instructions）；
- 客户端配置 ClientConfig；
- 初始历史（"role: content" 形式的文本行）；
- 上传文件时默认使用的 purpose。

可以从 YAML 文件加载，client 段的字段与 ClientConfig 一致。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from llm_core.domain.exceptions import ValidationError
from llm_core.domain.models import ConversationTurn, FallbackRates, SamplingParams
from llm_core.providers import create_client
from llm_core.providers.files import DEFAULT_UPLOAD_PURPOSE
from llm_core.providers.openai_client import OpenAIClient
from llm_core.providers.registry import ClientConfig


@dataclass
class AgentProfile:
    name: str
    agent_id: str = ""
    instructions: Optional[str] = None
    client_config: ClientConfig = field(default_factory=ClientConfig)
    initial_history: List[str] = field(default_factory=list)
    default_upload_purpose: str = DEFAULT_UPLOAD_PURPOSE

    def effective_instructions(self, override: Optional[str] = None) -> str:
        """override > Agent 指令 > 客户端 system_instructions > 空串。"""

        if override is not None:
            return override
        if self.instructions:
            return self.instructions
        return self.client_config.system_instructions or ""

    def initial_turns(self) -> List[ConversationTurn]:
        """解析 "role: content" 行；没有角色前缀的行视为 user。"""

        turns: List[ConversationTurn] = []
        for line in self.initial_history:
            if not line or not line.strip():
                continue
            role, sep, content = line.partition(":")
            if sep and role.strip().lower() in ("system", "user", "assistant", "developer"):
                turns.append(ConversationTurn(role=role, content=content.strip()))
            else:
                turns.append(ConversationTurn(role="user", content=line.strip()))
        return turns

    def build_client(self) -> Optional[OpenAIClient]:
        """创建客户端并写入初始历史；配置不可用时返回 None。"""

        client = create_client(self.client_config)
        if client is None:
            return None
        if self.instructions:
            client.set_system_instructions(self.instructions)
        client.history.replace(self.initial_turns())
        return client

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentProfile":
        client_raw = dict(data.get("client") or {})
        sampling_raw = client_raw.pop("sampling", None) or {}
        rates_raw = client_raw.pop("fallback_rates", None) or {}
        try:
            client_config = ClientConfig(
                sampling=SamplingParams(**sampling_raw),
                fallback_rates=FallbackRates(**rates_raw),
                **client_raw,
            )
        except TypeError as e:
            raise ValidationError(code="INVALID_AGENT_PROFILE", message=str(e))
        return cls(
            name=str(data.get("name") or ""),
            agent_id=str(data.get("agent_id") or ""),
            instructions=data.get("instructions"),
            client_config=client_config,
            initial_history=[str(x) for x in data.get("initial_history") or []],
            default_upload_purpose=data.get("default_upload_purpose") or DEFAULT_UPLOAD_PURPOSE,
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "AgentProfile":
        p = Path(path).expanduser()
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ValidationError(code="AGENT_PROFILE_READ_ERROR", message=str(e), path=str(p))
        if not isinstance(data, dict):
            raise ValidationError(code="INVALID_AGENT_PROFILE", message=f"{p} is not a mapping")
        return cls.from_dict(data)
