"""模型价格目录（USD / 1M tokens）。

价格目录是外部维护的表：(provider_id, model_id, tier) -> 三种费率。

- provider_id / model_id 查找时去除空白且不区分大小写；tier 精确匹配。
- 重复键在 rebuild_cache() 时后写覆盖先写。
- 可从 YAML 文件加载/保存，格式与 to_dict() 一致。
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from llm_core.domain.exceptions import ValidationError


class ServiceTier(str, Enum):
    STANDARD = "standard"
    FLEX = "flex"
    PRIORITY = "priority"

    @classmethod
    def parse(cls, value: Union[str, "ServiceTier", None]) -> "ServiceTier":
        """精确匹配枚举值（"standard" / "flex" / "priority"），空值视为 standard。"""

        if isinstance(value, ServiceTier):
            return value
        try:
            return cls(value) if value else cls.STANDARD
        except ValueError:
            raise ValidationError(code="INVALID_TIER", message=f"Unknown service tier: {value!r}")


@dataclass
class PriceEntry:
    provider_id: str = "OpenAI"
    model_id: str = "gpt-5.2"
    tier: ServiceTier = ServiceTier.STANDARD
    input_usd_per_1m: float = 0.0
    cached_input_usd_per_1m: float = 0.0
    output_usd_per_1m: float = 0.0
    notes: Optional[str] = None

    @property
    def has_any_rate(self) -> bool:
        return self.input_usd_per_1m > 0 or self.cached_input_usd_per_1m > 0 or self.output_usd_per_1m > 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["tier"] = self.tier.value
        if not self.notes:
            data.pop("notes")
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PriceEntry":
        return cls(
            provider_id=str(data.get("provider_id") or ""),
            model_id=str(data.get("model_id") or ""),
            tier=ServiceTier.parse(data.get("tier")),
            input_usd_per_1m=float(data.get("input_usd_per_1m") or 0.0),
            cached_input_usd_per_1m=float(data.get("cached_input_usd_per_1m") or 0.0),
            output_usd_per_1m=float(data.get("output_usd_per_1m") or 0.0),
            notes=data.get("notes"),
        )


CacheKey = Tuple[str, str, ServiceTier]


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


@dataclass
class PricingCatalog:
    """价格目录。修改 entries 后需调用 rebuild_cache()。"""

    entries: List[PriceEntry] = field(default_factory=list)
    source: Optional[str] = None
    last_updated_utc_iso: Optional[str] = None
    _cache: Dict[CacheKey, PriceEntry] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.rebuild_cache()

    def rebuild_cache(self) -> None:
        cache: Dict[CacheKey, PriceEntry] = {}
        for entry in self.entries:
            if entry is None:
                continue
            cache[(_normalize(entry.provider_id), _normalize(entry.model_id), entry.tier)] = entry
        self._cache = cache

    def try_get(
        self,
        provider_id: Optional[str],
        model_id: Optional[str],
        tier: Union[str, ServiceTier] = ServiceTier.STANDARD,
    ) -> Optional[PriceEntry]:
        if not (provider_id or "").strip() or not (model_id or "").strip():
            return None
        return self._cache.get((_normalize(provider_id), _normalize(model_id), ServiceTier.parse(tier)))

    def find(self, provider_id: str, model_id: str, tier: ServiceTier) -> Optional[PriceEntry]:
        """在 entries 中线性查找第一条匹配项（不依赖缓存）。"""

        for entry in self.entries:
            if entry is None:
                continue
            if _normalize(entry.provider_id) != _normalize(provider_id):
                continue
            if _normalize(entry.model_id) != _normalize(model_id):
                continue
            if entry.tier != tier:
                continue
            return entry
        return None

    # ---- 持久化 ----

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "last_updated_utc_iso": self.last_updated_utc_iso,
            "entries": [e.to_dict() for e in self.entries if e is not None],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PricingCatalog":
        raw_entries = data.get("entries") or []
        if not isinstance(raw_entries, list):
            raise ValidationError(code="INVALID_CATALOG", message="catalog 'entries' must be a list")
        try:
            entries = [PriceEntry.from_dict(e) for e in raw_entries if isinstance(e, dict)]
        except (TypeError, ValueError) as e:
            raise ValidationError(code="INVALID_CATALOG", message=f"invalid catalog entry: {e}")
        return cls(
            entries=entries,
            source=data.get("source"),
            last_updated_utc_iso=data.get("last_updated_utc_iso"),
        )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "PricingCatalog":
        p = Path(path).expanduser()
        try:
            data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ValidationError(code="CATALOG_READ_ERROR", message=str(e), path=str(p))
        if not isinstance(data, dict):
            raise ValidationError(code="INVALID_CATALOG", message=f"{p} is not a mapping", path=str(p))
        return cls.from_dict(data)

    def to_yaml(self, path: Union[str, Path]) -> None:
        p = Path(path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True), encoding="utf-8")


# OpenAI Standard tier 文本 token 价格（model_id, input, cached, output, notes）
OPENAI_STANDARD_TEXT_DEFAULTS: List[Tuple[str, float, float, float, Optional[str]]] = [
    ("gpt-5.2", 1.75, 0.175, 14.00, None),
    ("gpt-5.1", 1.25, 0.125, 10.00, None),
    ("gpt-5", 1.25, 0.125, 10.00, None),
    ("gpt-5-mini", 0.25, 0.025, 2.00, None),
    ("gpt-5-nano", 0.05, 0.005, 0.40, None),
    ("gpt-5.2-chat-latest", 1.75, 0.175, 14.00, None),
    ("gpt-5.1-chat-latest", 1.25, 0.125, 10.00, None),
    ("gpt-5-chat-latest", 1.25, 0.125, 10.00, None),
    ("gpt-4.1", 2.00, 0.50, 8.00, None),
    ("gpt-4.1-mini", 0.40, 0.10, 1.60, None),
    ("gpt-4.1-nano", 0.10, 0.025, 0.40, None),
    ("gpt-4o", 2.50, 1.25, 10.00, None),
    ("gpt-4o-mini", 0.15, 0.075, 0.60, None),
    ("o1", 15.00, 7.50, 60.00, None),
    ("o1-mini", 1.10, 0.55, 4.40, None),
    ("o1-pro", 150.00, 0.0, 600.00, "No cached-input rate listed on pricing page."),
    ("o3", 2.00, 0.50, 8.00, None),
    ("o3-mini", 1.10, 0.55, 4.40, None),
    ("o3-pro", 20.00, 0.0, 80.00, "No cached-input rate listed on pricing page."),
    ("o4-mini", 1.10, 0.275, 4.40, None),
]

OPENAI_PRICING_SOURCE = "https://platform.openai.com/docs/pricing"


def apply_openai_standard_defaults(
    catalog: PricingCatalog,
    overwrite_existing: bool = False,
    update_metadata: bool = True,
) -> PricingCatalog:
    """写入 OpenAI Standard tier 默认价格。

    已存在的条目：
    - overwrite_existing=True: 覆盖三种费率（notes 非空时一并覆盖）。
    - overwrite_existing=False: 只填充当前为 0 的费率。
    """

    if update_metadata:
        catalog.source = OPENAI_PRICING_SOURCE
        catalog.last_updated_utc_iso = datetime.now(timezone.utc).isoformat()

    for model_id, input_rate, cached_rate, output_rate, notes in OPENAI_STANDARD_TEXT_DEFAULTS:
        existing = catalog.find("OpenAI", model_id, ServiceTier.STANDARD)
        if existing is None:
            catalog.entries.append(
                PriceEntry(
                    provider_id="OpenAI",
                    model_id=model_id,
                    tier=ServiceTier.STANDARD,
                    input_usd_per_1m=input_rate,
                    cached_input_usd_per_1m=cached_rate,
                    output_usd_per_1m=output_rate,
                    notes=notes,
                )
            )
            continue

        if overwrite_existing:
            existing.input_usd_per_1m = input_rate
            existing.cached_input_usd_per_1m = cached_rate
            existing.output_usd_per_1m = output_rate
            if notes:
                existing.notes = notes
            continue

        if existing.input_usd_per_1m <= 0:
            existing.input_usd_per_1m = input_rate
        if existing.cached_input_usd_per_1m <= 0:
            existing.cached_input_usd_per_1m = cached_rate
        if existing.output_usd_per_1m <= 0:
            existing.output_usd_per_1m = output_rate
        if not existing.notes and notes:
            existing.notes = notes

    catalog.rebuild_cache()
    return catalog
