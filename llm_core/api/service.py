"""对外 API 服务模块。

提供简化的会话接口供上层应用（编辑器、CLI、Web 服务等）调用：

- send: 按历史策略发送一次补全，可附带最近一次上传的 PDF；
- ping: 连通性探测，不污染历史；
- upload_pdf: 上传 PDF 并记住 file_id；
- estimate_last_cost: 用价格目录/兜底费率估算上一轮调用的成本。

同一会话同一时刻只允许一个进行中的请求，忙碌时直接返回 "busy"。
所有返回值都是普通 dict，便于序列化给 UI。
"""

import asyncio
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

from llm_core.config.settings import settings
from llm_core.domain.exceptions import BusinessError, ValidationError
from llm_core.domain.models import CompletionResult, FileUploadResult
from llm_core.infrastructure.logging.logger import logger
from llm_core.orchestration.history_policy import execute_with_history_policy
from llm_core.orchestration import probe
from llm_core.pricing.catalog import PricingCatalog, ServiceTier
from llm_core.pricing.estimator import TokenUsage, estimate, format_usd
from llm_core.pricing.resolver import resolve_pricing
from llm_core.providers import create_client
from llm_core.providers.files import DEFAULT_UPLOAD_PURPOSE
from llm_core.providers.openai_client import OpenAIClient


class ChatSession:
    """单客户端会话，串行化同一历史上的所有请求。"""

    def __init__(
        self,
        client: Optional[OpenAIClient],
        catalog: Optional[PricingCatalog] = None,
        tier: Union[str, ServiceTier] = ServiceTier.STANDARD,
    ):
        self.client = client
        self.catalog = catalog
        self.tier = ServiceTier.parse(tier)
        self.last_upload: Optional[FileUploadResult] = None
        self.last_result: Optional[CompletionResult] = None
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def send(
        self,
        prompt: str,
        instructions: Optional[str] = None,
        include_history: bool = True,
        attach_last_upload: bool = True,
    ) -> Dict[str, Any]:
        if self.client is None:
            return {"status": "no_client", "message": "No runtime client."}
        prompt = (prompt or "").strip()
        if not prompt:
            return {"status": "empty_prompt", "message": "Prompt is empty."}
        if self.busy:
            return {"status": "busy", "message": "A request is already in flight."}

        file_ids: Optional[List[str]] = None
        if attach_last_upload and self.last_upload and self.client.file_attachments() is not None:
            file_ids = [self.last_upload.file_id]

        async with self._lock:
            result = await execute_with_history_policy(
                self.client,
                prompt,
                instructions,
                include_history_in_request=include_history,
                merge_new_turn_back_when_suppressed=True,
                file_ids=file_ids,
            )
        self.last_result = result

        if not result.success:
            status, message = "failed", "Request failed. Check logs for API errors."
        elif not result.output_text:
            status, message = "empty", "Request completed (empty response)."
        else:
            status, message = "ok", "Request completed."
        return {
            "status": status,
            "message": message,
            "output_text": result.output_text or "",
            "attached_file_ids": file_ids or [],
            "usage": asdict(result),
        }

    async def ping(self) -> Dict[str, Any]:
        if self.client is None:
            return {"status": "no_client", "message": "No runtime client."}
        if self.busy:
            return {"status": "busy", "message": "A request is already in flight."}
        async with self._lock:
            result = await probe.ping(self.client)
        return {"status": "ok" if result.ok else "failed", "message": result.status, "text": result.text}

    async def upload_pdf(self, path: str, purpose: Optional[str] = DEFAULT_UPLOAD_PURPOSE) -> Dict[str, Any]:
        if self.client is None:
            return {"status": "no_client", "message": "No runtime client."}
        if self.busy:
            return {"status": "busy", "message": "A request is already in flight."}
        try:
            async with self._lock:
                upload = await self.client.upload_file(path, purpose)
        except BusinessError as e:
            logger.error(
                "PDF upload failed",
                extra={"extra": {"code": e.code, "path": str(path), "error": e.message}},
            )
            return {"status": "error", "code": e.code, "message": f"Upload FAILED: {e.message}"}
        self.last_upload = upload
        return {"status": "ok", "message": f"Upload OK. file_id = {upload.file_id}", "upload": asdict(upload)}

    def estimate_last_cost(self, treat_reasoning_as_output: bool = True) -> Dict[str, Any]:
        if self.client is None or self.last_result is None:
            return {"status": "no_result"}
        pricing = resolve_pricing(
            self.catalog,
            self.client.name,
            self.client.model,
            self.tier,
            self.client.fallback_rates,
        )
        if pricing is None:
            return {"status": "no_pricing", "message": "No pricing data available."}
        breakdown = estimate(
            TokenUsage.from_result(self.last_result),
            pricing.input_usd_per_1m,
            pricing.cached_input_usd_per_1m,
            pricing.output_usd_per_1m,
            treat_reasoning_as_output=treat_reasoning_as_output,
        )
        return {
            "status": "ok",
            "source": pricing.source,
            "total_usd": breakdown.total_usd,
            "breakdown": asdict(breakdown),
            "display": "$" + format_usd(breakdown.total_usd),
        }

    def history(self) -> List[Dict[str, str]]:
        if self.client is None:
            return []
        return [{"role": role, "content": content} for role, content in self.client.history.formatted()]

    def clear_history(self) -> None:
        if self.client is not None:
            self.client.clear_history()


def load_catalog(path: Optional[str]) -> Optional[PricingCatalog]:
    """加载价格目录；文件缺失或无法解析时记录日志并返回 None（只使用兜底费率）。"""

    if not path:
        return None
    try:
        return PricingCatalog.from_yaml(path)
    except ValidationError as e:
        logger.warning(
            "Pricing catalog unavailable, using fallback rates",
            extra={"extra": {"code": e.code, "path": str(path), "error": e.message}},
        )
        return None


_session: Optional[ChatSession] = None


def get_default_session() -> ChatSession:
    """获取基于全局配置的默认会话（单例）。"""
    global _session
    if _session is None:
        catalog = load_catalog(settings.pricing_catalog_file)
        client = create_client(settings.to_client_config())
        _session = ChatSession(client, catalog=catalog, tier=settings.pricing_tier)
    return _session
