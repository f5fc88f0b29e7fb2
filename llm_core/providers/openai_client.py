"""OpenAI Provider 客户端。

本模块负责：

1. 持有显式注入的 ClientConfig 与客户端独占的 ConversationHistory。
2. 按配置选择线协议方言（ChatCompletionsDialect / ResponsesDialect），
   由方言构造请求体并解析响应。
3. 执行 HTTP 调用：传输失败（非 2xx、网络异常、响应体不是 JSON）一律吸收为
   CompletionResult.empty() 并记录日志，此时不修改历史。
4. 调用成功后把 user/assistant 两条消息追加到历史。
5. 上传文件（multipart），失败时直接抛出异常给调用方。
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import httpx

from llm_core.domain.exceptions import ApiError, NetworkError, ValidationError
from llm_core.domain.history import ConversationHistory
from llm_core.domain.models import CompletionRequest, CompletionResult, FileUploadResult
from llm_core.infrastructure.logging.logger import logger
from llm_core.providers.base import WireDialect
from llm_core.providers.chat_completions import ChatCompletionsDialect, token_count
from llm_core.providers.files import DEFAULT_UPLOAD_PURPOSE, FileAttachmentExtension, validate_upload_path
from llm_core.providers.registry import (
    ClientConfig,
    get_provider_config,
    normalize_base_url,
    normalize_path,
)
from llm_core.providers.responses import ResponsesDialect


class OpenAIClient:
    """OpenAI 兼容接口的客户端实现。

    - name: Provider 名称（供日志/价格目录使用）。
    - complete: 纯文本补全入口，返回 CompletionResult。
    - file_attachments: 仅 responses 方言返回文件附件能力，否则为 None。
    - upload_file: 上传 PDF，返回 FileUploadResult。
    """

    name = "openai"

    def __init__(self, config: ClientConfig, history: Optional[ConversationHistory] = None):
        self._config = config
        provider_cfg = get_provider_config(config.provider)

        self.model = config.model
        self.sampling = config.sampling.copy()
        self.system_instructions = config.system_instructions or ""
        self.fallback_rates = config.fallback_rates
        self.history = history if history is not None else ConversationHistory()

        self._api_key = (config.api_key or "").strip()
        self._timeout = config.http_timeout
        self._base_url = normalize_base_url(config.base_url, provider_cfg.base_url)
        self._files_path = normalize_path(config.files_path, provider_cfg.files_path)

        self._dialect: WireDialect
        self._attachments: Optional[FileAttachmentExtension] = None
        if config.api_variant == "responses":
            responses = ResponsesDialect()
            self._dialect = responses
            self._path = normalize_path(config.responses_path, provider_cfg.responses_path)
            self._attachments = FileAttachmentExtension(self, responses)
        else:
            self._dialect = ChatCompletionsDialect()
            self._path = normalize_path(config.chat_path, provider_cfg.chat_path)

        if not self._api_key:
            logger.warning("API key is missing, requests will fail until it is set")

    # ---- 配置 ----

    @property
    def api_variant(self) -> str:
        return self._dialect.name

    @property
    def endpoint_url(self) -> str:
        return f"{self._base_url}{self._path}"

    def set_system_instructions(self, instructions: Optional[str]) -> None:
        self.system_instructions = instructions or ""
        logger.info("System instructions updated")

    @contextmanager
    def sampling_override(self, **changes: Any) -> Iterator["OpenAIClient"]:
        """临时修改采样参数，退出时（包括异常）恢复原值。

        用法::

            with client.sampling_override(max_output_tokens=16, temperature=0.0):
                await client.complete("...")
        """

        saved = self.sampling.copy()
        # 先在副本上修改并校验，失败时客户端保持原值
        overridden = self.sampling.copy()
        for key, value in changes.items():
            if not hasattr(overridden, key):
                raise AttributeError(f"Unknown sampling parameter: {key}")
            setattr(overridden, key, value)
        self.sampling = overridden.clamped()
        try:
            yield self
        finally:
            self.sampling = saved

    def clear_history(self) -> None:
        self.history.clear()

    def file_attachments(self) -> Optional[FileAttachmentExtension]:
        return self._attachments

    # ---- 补全 ----

    async def complete(self, prompt: str, instructions: Optional[str] = None) -> CompletionResult:
        """执行一次纯文本补全。instructions 为 None 时使用 system_instructions。"""

        req = self.build_request(prompt, instructions)
        payload = self._dialect.build_payload(req)
        return await self.send(payload, self._dialect, req.prompt)

    def build_request(
        self,
        prompt: str,
        instructions: Optional[str] = None,
        file_ids: Optional[List[str]] = None,
    ) -> CompletionRequest:
        return CompletionRequest(
            model=self.model,
            sampling=self.sampling.copy(),
            instructions=self.system_instructions if instructions is None else instructions,
            history=self.history.snapshot(),
            prompt=prompt or "",
            file_ids=list(file_ids or []),
        )

    async def send(self, payload: Dict[str, Any], dialect: WireDialect, prompt: str) -> CompletionResult:
        """发送已构造好的请求体，成功后把本轮 user/assistant 追加到历史。"""

        log_ctx: Dict[str, Any] = {"provider": self.name, "dialect": dialect.name, "model": self.model}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False) as client:
                resp = await client.post(self.endpoint_url, json=payload, headers=self._headers())
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
            self._log(logging.ERROR, "Completion request raised", log_ctx, error=str(e))
            return CompletionResult.empty()

        if not 200 <= resp.status_code < 300:
            self._log(
                logging.ERROR,
                "Completion request failed",
                log_ctx,
                status=resp.status_code,
                body=resp.text,
            )
            return CompletionResult.empty()

        try:
            data = resp.json()
        except ValueError as e:
            self._log(logging.ERROR, "Completion response is not JSON", log_ctx, error=str(e))
            return CompletionResult.empty()

        result = dialect.parse_response(data)
        self.history.append("user", prompt)
        self.history.append("assistant", result.output_text or "")
        self._log(
            logging.INFO,
            "Completion request succeeded",
            log_ctx,
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            empty_output=result.output_text is None,
        )
        return result

    # ---- 文件上传 ----

    async def upload_file(
        self,
        file_path: Union[str, Path, None],
        purpose: Optional[str] = DEFAULT_UPLOAD_PURPOSE,
    ) -> FileUploadResult:
        """上传 PDF 文件。本地校验失败抛 ValidationError，HTTP 失败抛 ApiError/NetworkError。"""

        path = validate_upload_path(file_path)
        purpose = (purpose or "").strip() or DEFAULT_UPLOAD_PURPOSE
        url = f"{self._base_url}{self._files_path}"
        log_ctx: Dict[str, Any] = {"provider": self.name, "filename": path.name, "purpose": purpose}
        try:
            content = path.read_bytes()
        except OSError as e:
            raise ValidationError(code="FILE_READ_ERROR", message=str(e), path=str(path))
        try:
            async with httpx.AsyncClient(timeout=self._timeout, trust_env=False) as client:
                resp = await client.post(
                    url,
                    data={"purpose": purpose},
                    files={"file": (path.name, content, "application/pdf")},
                    headers={"Authorization": f"Bearer {self._api_key}"},
                )
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e))

        if not 200 <= resp.status_code < 300:
            self._log(logging.ERROR, "File upload failed", log_ctx, status=resp.status_code, body=resp.text)
            raise ApiError(
                code="UPLOAD_FAILED",
                message=f"File upload failed: {resp.status_code}",
                http_status=resp.status_code,
            )
        try:
            body = resp.json()
        except ValueError:
            body = None
        file_id = body.get("id") if isinstance(body, dict) else None
        if not file_id or not str(file_id).strip():
            raise ApiError(code="UPLOAD_NO_FILE_ID", message="File upload returned no file id")

        self._log(logging.INFO, "File uploaded", log_ctx, file_id=file_id)
        return FileUploadResult(
            file_id=str(file_id),
            filename=body.get("filename") or path.name,
            bytes=token_count(body.get("bytes")),
        )

    # ---- 辅助方法 ----

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
