"""价格目录、价格来源解析与成本估算。"""

from llm_core.pricing.catalog import PriceEntry, PricingCatalog, ServiceTier, apply_openai_standard_defaults
from llm_core.pricing.estimator import CostBreakdown, TokenUsage, estimate, format_usd, tokens_to_usd
from llm_core.pricing.resolver import ResolvedPricing, estimate_cost, resolve_pricing

__all__ = [
    "CostBreakdown",
    "PriceEntry",
    "PricingCatalog",
    "ResolvedPricing",
    "ServiceTier",
    "TokenUsage",
    "apply_openai_standard_defaults",
    "estimate",
    "estimate_cost",
    "format_usd",
    "resolve_pricing",
    "tokens_to_usd",
]
