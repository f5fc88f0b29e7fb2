"""会话历史存储。

ConversationHistory 是一个按时间顺序排列的 ConversationTurn 序列，
由单个客户端实例独占持有。

- snapshot() 总是返回新的 list，与内部存储不共享。
- replace() 会复制传入的序列，调用方之后修改原序列不会影响历史。
"""

from typing import Iterable, Iterator, List, Tuple

from llm_core.domain.models import INSTRUCTION_ROLES, ConversationTurn


def replayable_turns(turns: Iterable[ConversationTurn]) -> List[ConversationTurn]:
    """过滤出可回放到请求中的历史：跳过空内容与 system/developer 角色。"""

    return [t for t in turns if not t.is_blank and t.role not in INSTRUCTION_ROLES]


class ConversationHistory:
    def __init__(self, turns: Iterable[ConversationTurn] = ()):
        self._turns: List[ConversationTurn] = list(turns)

    def append(self, role: str, content: str) -> ConversationTurn:
        turn = ConversationTurn(role=role, content=content)
        self._turns.append(turn)
        return turn

    def extend(self, turns: Iterable[ConversationTurn]) -> None:
        self._turns.extend(turns)

    def snapshot(self) -> List[ConversationTurn]:
        """返回历史的独立副本（turn 本身不可变，浅拷贝即可）。"""

        return list(self._turns)

    def replace(self, turns: Iterable[ConversationTurn]) -> None:
        """整体替换历史内容。"""

        self._turns = list(turns)

    def clear(self) -> None:
        self._turns = []

    def formatted(self) -> List[Tuple[str, str]]:
        """以 (role, content) 列表形式返回，供展示或复制使用。"""

        return [(t.role, t.content) for t in self._turns]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(list(self._turns))

    def __getitem__(self, index: int) -> ConversationTurn:
        return self._turns[index]

    def __repr__(self) -> str:
        return f"ConversationHistory(turns={len(self._turns)})"
