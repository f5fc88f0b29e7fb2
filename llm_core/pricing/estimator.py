"""基于 token 用量与 USD/1M 费率的纯计算工具，不发起任何网络请求。"""

from dataclasses import dataclass

from llm_core.domain.models import CompletionResult


TOKENS_PER_UNIT = 1_000_000


@dataclass
class TokenUsage:
    """token 用量。

    reasoning_tokens: 部分模型单独上报的推理 token。若 output_tokens 已包含推理 token，
    估算时应传 treat_reasoning_as_output=False。
    """

    input_tokens: int = 0
    cached_input_tokens: int = 0
    output_tokens: int = 0
    reasoning_tokens: int = 0

    @classmethod
    def from_result(cls, result: CompletionResult) -> "TokenUsage":
        return cls(
            input_tokens=result.input_tokens,
            cached_input_tokens=result.cached_input_tokens,
            output_tokens=result.output_tokens,
            reasoning_tokens=result.reasoning_tokens,
        )


@dataclass
class CostBreakdown:
    non_cached_input_usd: float = 0.0
    cached_input_usd: float = 0.0
    output_usd: float = 0.0

    @property
    def total_usd(self) -> float:
        return self.non_cached_input_usd + self.cached_input_usd + self.output_usd

    def __str__(self) -> str:
        return (
            f"Total: {format_usd(self.total_usd)} (input: {format_usd(self.non_cached_input_usd)}, "
            f"cached: {format_usd(self.cached_input_usd)}, output: {format_usd(self.output_usd)})"
        )


def estimate(
    usage: TokenUsage,
    input_usd_per_1m: float,
    cached_input_usd_per_1m: float,
    output_usd_per_1m: float,
    treat_reasoning_as_output: bool = True,
) -> CostBreakdown:
    input_tokens = max(0, usage.input_tokens)
    cached = max(0, usage.cached_input_tokens)
    output = max(0, usage.output_tokens)
    reasoning = max(0, usage.reasoning_tokens)

    # cached 不能超过 input
    cached = min(cached, input_tokens)
    non_cached = input_tokens - cached

    if treat_reasoning_as_output:
        output += reasoning

    return CostBreakdown(
        non_cached_input_usd=tokens_to_usd(non_cached, input_usd_per_1m),
        cached_input_usd=tokens_to_usd(cached, cached_input_usd_per_1m),
        output_usd=tokens_to_usd(output, output_usd_per_1m),
    )


def tokens_to_usd(tokens: int, usd_per_1m: float) -> float:
    if tokens <= 0 or usd_per_1m <= 0:
        return 0.0
    return (tokens / TOKENS_PER_UNIT) * usd_per_1m


def format_usd(usd: float, decimals: int = 6) -> str:
    decimals = min(max(decimals, 2), 10)
    return f"{usd:.{decimals}f}"
