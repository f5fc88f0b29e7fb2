"""价格来源解析。

解析顺序：

1. 价格目录中 (provider_id, model_id, tier) 的条目，且至少一项费率 > 0；
2. 否则使用客户端级兜底费率（负数按 0 处理）；
3. 两者都没有非零费率时返回 None（“无价格数据”），不计算虚假的 0 成本。
"""

from dataclasses import dataclass
from typing import Optional, Union

from llm_core.domain.models import CompletionResult, FallbackRates
from llm_core.pricing.catalog import PricingCatalog, ServiceTier
from llm_core.pricing.estimator import CostBreakdown, TokenUsage, estimate


@dataclass
class ResolvedPricing:
    input_usd_per_1m: float
    cached_input_usd_per_1m: float
    output_usd_per_1m: float
    source: str
    from_catalog: bool


def _has_any_rate(input_rate: float, cached_rate: float, output_rate: float) -> bool:
    return input_rate > 0 or cached_rate > 0 or output_rate > 0


def resolve_pricing(
    catalog: Optional[PricingCatalog],
    provider_id: str,
    model_id: str,
    tier: Union[str, ServiceTier] = ServiceTier.STANDARD,
    fallback: Optional[FallbackRates] = None,
) -> Optional[ResolvedPricing]:
    tier = ServiceTier.parse(tier)
    catalog_note = "No pricing catalog."
    if catalog is not None:
        entry = catalog.try_get(provider_id, model_id, tier)
        key = f"{provider_id}/{model_id}/{tier.value}"
        if entry is None:
            catalog_note = f"Catalog has no entry for ({key})."
        elif not entry.has_any_rate:
            catalog_note = f"Catalog entry found, but rates are 0 ({key})."
        else:
            return ResolvedPricing(
                input_usd_per_1m=entry.input_usd_per_1m,
                cached_input_usd_per_1m=entry.cached_input_usd_per_1m,
                output_usd_per_1m=entry.output_usd_per_1m,
                source=f"Catalog ({key})",
                from_catalog=True,
            )

    fallback = fallback or FallbackRates()
    input_rate = max(0.0, fallback.input_usd_per_1m)
    cached_rate = max(0.0, fallback.cached_input_usd_per_1m)
    output_rate = max(0.0, fallback.output_usd_per_1m)
    if not _has_any_rate(input_rate, cached_rate, output_rate):
        return None
    return ResolvedPricing(
        input_usd_per_1m=input_rate,
        cached_input_usd_per_1m=cached_rate,
        output_usd_per_1m=output_rate,
        source=f"Client fallback rates. {catalog_note}",
        from_catalog=False,
    )


def estimate_cost(
    result: CompletionResult,
    catalog: Optional[PricingCatalog],
    provider_id: str,
    model_id: str,
    tier: Union[str, ServiceTier] = ServiceTier.STANDARD,
    fallback: Optional[FallbackRates] = None,
    treat_reasoning_as_output: bool = True,
) -> Optional[CostBreakdown]:
    """解析价格并估算成本；无价格数据时返回 None。"""

    pricing = resolve_pricing(catalog, provider_id, model_id, tier, fallback)
    if pricing is None:
        return None
    return estimate(
        TokenUsage.from_result(result),
        pricing.input_usd_per_1m,
        pricing.cached_input_usd_per_1m,
        pricing.output_usd_per_1m,
        treat_reasoning_as_output=treat_reasoning_as_output,
    )
