"""
Pricing configuration — store settings for tax and shipping.

    config = PricingConfig()                      # 8% tax, no shipping
    config = PricingConfig.from_settings(rows)    # store `settings` table
    config = PricingConfig.from_env()             # TALLY_* variables
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "TALLY_"

# settings key -> field name; later keys win, so tax_rate overrides default_tax_rate
_SETTINGS_KEYS = {
    "default_tax_rate": "tax_rate",
    "tax_rate": "tax_rate",
    "tax_enabled": "tax_enabled",
    "shipping_enabled": "shipping_enabled",
    "default_shipping_rate": "shipping_rate",
    "free_shipping_threshold": "free_shipping_threshold",
}


class PricingConfig(BaseModel):
    """
    Store-level pricing settings.

    Note: Immutable. One snapshot per computation.
    """

    model_config = ConfigDict(frozen=True)

    tax_rate: Decimal = Field(default=Decimal("0.08"), ge=0, le=1)
    tax_enabled: bool = True
    shipping_enabled: bool = True
    shipping_rate: Decimal = Field(default=Decimal("0.00"), ge=0)
    # Shipping is waived when the subtotal is strictly above this
    free_shipping_threshold: Decimal | None = Field(default=None, ge=0)

    @classmethod
    def from_settings(cls, rows: Mapping[str, Any]) -> PricingConfig:
        """
        Build from the store `settings` key/value rows.

        Unknown keys are ignored, missing keys keep their defaults.
        """
        values: dict[str, Any] = {}
        for key, name in _SETTINGS_KEYS.items():
            if key in rows and rows[key] not in (None, ""):
                values[name] = _decimal_or_raw(rows[key])
        return cls(**values)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = ENV_PREFIX,
    ) -> PricingConfig:
        """Build from TALLY_TAX_RATE, TALLY_SHIPPING_RATE, ..."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = env.get(prefix + name.upper())
            if raw is not None and raw.strip() != "":
                values[name] = raw.strip()
        return cls(**values)


def _decimal_or_raw(value: Any) -> Any:
    # JSON numbers arrive as float; keep their printed value
    if isinstance(value, float):
        return Decimal(str(value))
    return value


__all__ = ("PricingConfig", "ENV_PREFIX")
