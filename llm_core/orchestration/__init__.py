"""请求编排：历史策略执行器与连通性探测。"""

from llm_core.orchestration.history_policy import execute_with_history_policy
from llm_core.orchestration.probe import PingResult, ping

__all__ = ["PingResult", "execute_with_history_policy", "ping"]
