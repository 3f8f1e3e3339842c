"""
Pricing response schema.

AIPricingDetails is the single typed shape an oracle answer may take once
it enters the engine. PRICING_RESPONSE_SCHEMA is the JSON Schema sent to
the model in json_schema response-format mode.
"""
import math
import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

_NUMBER = re.compile(r'-?\d+(?:\.\d+)?')


def coerce_money(value: Any) -> Optional[float]:
    """Turn "$3,200", "3200 USD" or 3200 into 3200.0; None when there is no number."""
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        match = _NUMBER.search(str(value).replace(',', ''))
        if not match:
            return None
        number = float(match.group())
    return number if math.isfinite(number) else None


class PriceBreakdown(BaseModel):
    linehaul: Optional[float] = None
    fuel_surcharge: Optional[float] = None
    accessorials: Optional[float] = None
    margin: Optional[float] = None
    port_fees: Optional[float] = None
    handling: Optional[float] = None

    @field_validator('*', mode='before')
    @classmethod
    def _money(cls, v):
        return coerce_money(v)


class AIPricingDetails(BaseModel):
    recommended_price: float
    floor_price: Optional[float] = None
    target_price: Optional[float] = None
    ceiling_price: Optional[float] = None
    confidence: Literal['HIGH', 'MEDIUM', 'LOW'] = 'LOW'
    reasoning: str = ""
    price_breakdown: PriceBreakdown = Field(default_factory=PriceBreakdown)
    market_factors: List[str] = Field(default_factory=list)
    negotiation_room_percent: Optional[float] = None

    @field_validator('recommended_price', 'floor_price', 'target_price', 'ceiling_price',
                     'negotiation_room_percent', mode='before')
    @classmethod
    def _money(cls, v):
        return coerce_money(v)

    @field_validator('recommended_price')
    @classmethod
    def _positive(cls, v):
        if v is None or not math.isfinite(v) or v <= 0:
            raise ValueError('recommended_price must be a positive finite number')
        return v

    @field_validator('confidence', mode='before')
    @classmethod
    def _confidence(cls, v):
        text = str(v or 'LOW').strip().upper()
        return text if text in ('HIGH', 'MEDIUM', 'LOW') else 'LOW'

    @field_validator('market_factors', mode='before')
    @classmethod
    def _factors(cls, v):
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [str(item) for item in v]
        return [str(v)]

    @field_validator('reasoning', mode='before')
    @classmethod
    def _reasoning(cls, v):
        return "" if v is None else str(v)

    @field_validator('price_breakdown', mode='before')
    @classmethod
    def _breakdown(cls, v):
        return v if isinstance(v, dict) else {}

    @model_validator(mode='after')
    def _order_band(self):
        band = [p for p in (self.floor_price, self.target_price, self.ceiling_price) if p is not None]
        if len(band) == 3:
            self.floor_price, self.target_price, self.ceiling_price = sorted(band)
        if self.target_price is None:
            self.target_price = self.recommended_price
        return self

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump()


_MONEY = {"type": ["number", "null"]}

PRICING_RESPONSE_SCHEMA = {
    "name": "freight_pricing_recommendation",
    "strict": True,
    "schema": {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "recommended_price": {"type": "number"},
            "floor_price": _MONEY,
            "target_price": _MONEY,
            "ceiling_price": _MONEY,
            "confidence": {"type": "string", "enum": ["HIGH", "MEDIUM", "LOW"]},
            "reasoning": {"type": "string"},
            "price_breakdown": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "linehaul": _MONEY,
                    "fuel_surcharge": _MONEY,
                    "accessorials": _MONEY,
                    "margin": _MONEY,
                    "port_fees": _MONEY,
                    "handling": _MONEY,
                },
                "required": ["linehaul", "fuel_surcharge", "accessorials", "margin", "port_fees", "handling"],
            },
            "market_factors": {"type": "array", "items": {"type": "string"}},
            "negotiation_room_percent": _MONEY,
        },
        "required": [
            "recommended_price", "floor_price", "target_price", "ceiling_price", "confidence",
            "reasoning", "price_breakdown", "market_factors", "negotiation_room_percent",
        ],
    },
}
