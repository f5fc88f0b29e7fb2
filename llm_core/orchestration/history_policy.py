"""历史策略执行器。

在一次补全调用外层决定：

- 本次请求是否携带现有历史（include_history_in_request）；
- 不携带时，新产生的 user/assistant 是否合并回持久历史
  （merge_new_turn_back_when_suppressed）。

不携带历史时的流程：快照 -> 换成空历史 -> 调用 -> 取出新追加的消息 ->
恢复快照 -> 按需合并。这一流程要求同一历史同一时刻只有一个进行中的调用，
并发请求需要由调用方串行化（见 api.service）。
"""

from typing import List, Optional

from llm_core.domain.exceptions import ValidationError
from llm_core.domain.models import CompletionResult, ConversationTurn
from llm_core.infrastructure.logging.logger import logger
from llm_core.providers.base import CompletionClient
from llm_core.providers.files import clean_file_ids


async def execute_with_history_policy(
    client: Optional[CompletionClient],
    prompt: str,
    instructions: Optional[str],
    include_history_in_request: bool = True,
    merge_new_turn_back_when_suppressed: bool = True,
    file_ids: Optional[List[str]] = None,
) -> CompletionResult:
    if client is None:
        raise ValidationError(code="NO_CLIENT", message="client is None")

    if include_history_in_request:
        return await _complete_maybe_with_files(client, prompt, instructions, file_ids)

    history = client.history
    snapshot = history.snapshot()
    history.replace([])
    new_turns: List[ConversationTurn] = []
    try:
        result = await _complete_maybe_with_files(client, prompt, instructions, file_ids)
        new_turns = history.snapshot()
    finally:
        history.replace(snapshot)

    if merge_new_turn_back_when_suppressed and new_turns:
        history.extend(new_turns)
    logger.info(
        "History suppressed for request",
        extra={"extra": {"merged_turns": len(new_turns) if merge_new_turn_back_when_suppressed else 0}},
    )
    return result


async def _complete_maybe_with_files(
    client: CompletionClient,
    prompt: str,
    instructions: Optional[str],
    file_ids: Optional[List[str]],
) -> CompletionResult:
    ids = clean_file_ids(file_ids)
    if not ids:
        return await client.complete(prompt, instructions)

    attachments = client.file_attachments()
    if attachments is None:
        logger.warning(
            f"Client '{client.name}' does not support file attachments, sending text-only",
        )
        return await client.complete(prompt, instructions)
    return await attachments.complete_with_files(prompt, instructions, ids)
