"""
Pricing-Oracle Adapter.

Wraps a PricingOracle so the rest of the engine never sees an exception
or an untyped payload from it. recommend() always returns an
OracleOutcome; when the oracle is disabled, unreachable, slow or returns
junk, the outcome carries the match-based baseline and details=None.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from core.exceptions import OracleUnavailableError, OracleResponseError
from core.feedback.models import FeedbackData
from core.llm.interfaces import PricingOracle
from core.llm.pricing_prompt import build_pricing_prompt
from core.llm.schema_models import AIPricingDetails
from core.normalizer import NormalizedQuote
from core.pricing.models import SmartPriceSuggestion

logger = logging.getLogger(__name__)

STATUS_OK = 'ok'
STATUS_DISABLED = 'disabled'
STATUS_UNAVAILABLE = 'unavailable'
STATUS_INVALID = 'invalid'

AI_CONFIDENCE_SCORES = {'HIGH': 0.9, 'MEDIUM': 0.7, 'LOW': 0.5}

# (baseline share, oracle share)
BLEND_LOW_CONFIDENCE = (0.70, 0.30)
BLEND_LOW_PROJECT_CARGO = (0.25, 0.75)
BLEND_DEFAULT = (0.85, 0.15)

MAX_DEVIATION = 0.15


def confidence_tier(confidence: float) -> str:
    if confidence >= 0.75:
        return 'HIGH'
    if confidence >= 0.5:
        return 'MEDIUM'
    return 'LOW'


@dataclass
class OracleOutcome:
    status: str
    details: Optional[AIPricingDetails] = None
    final_price: Optional[float] = None
    final_confidence: Optional[float] = None
    range_low: Optional[float] = None
    range_high: Optional[float] = None
    baseline_price: Optional[float] = None
    ai_price: Optional[float] = None
    oracle_weight: float = 0.0
    model_name: Optional[str] = None
    error: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.status == STATUS_OK and self.details is not None


class PricingOracleAdapter:
    """Formats prompts for the pricing oracle and merges its answer into the estimate."""

    def __init__(self, oracle: Optional[PricingOracle] = None):
        self.oracle = oracle

    @property
    def enabled(self) -> bool:
        return self.oracle is not None

    def _fallback(self, status: str, baseline: SmartPriceSuggestion, error: Optional[str] = None) -> OracleOutcome:
        return OracleOutcome(
            status=status,
            final_price=baseline.suggested_price,
            final_confidence=baseline.confidence if baseline.has_price else None,
            range_low=baseline.range_low,
            range_high=baseline.range_high,
            baseline_price=baseline.suggested_price,
            model_name=getattr(self.oracle, 'model_name', None),
            error=error,
        )

    def baseline_only(self, baseline: SmartPriceSuggestion) -> OracleOutcome:
        """Outcome for a run that did not consult the oracle."""
        return self._fallback(STATUS_DISABLED, baseline)

    def recommend(
        self,
        query: NormalizedQuote,
        matches: Sequence,
        baseline: SmartPriceSuggestion,
        feedback_data: Optional[Dict[int, FeedbackData]] = None
    ) -> OracleOutcome:
        if self.oracle is None:
            return self._fallback(STATUS_DISABLED, baseline)

        prompt = build_pricing_prompt(query, matches, baseline=baseline, feedback_data=feedback_data)

        try:
            payload = self.oracle.request_pricing(prompt)
        except OracleUnavailableError as e:
            logger.warning(f"Quote {query.quote_id}: pricing oracle unavailable, using match-based estimate: {e}")
            return self._fallback(STATUS_UNAVAILABLE, baseline, str(e))
        except OracleResponseError as e:
            logger.warning(f"Quote {query.quote_id}: pricing oracle response unusable: {e}")
            return self._fallback(STATUS_INVALID, baseline, str(e))
        except Exception as e:
            logger.exception(f"Quote {query.quote_id}: unexpected pricing oracle failure, using match-based estimate")
            return self._fallback(STATUS_UNAVAILABLE, baseline, f"{type(e).__name__}: {e}")

        try:
            details = AIPricingDetails.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Quote {query.quote_id}: pricing oracle payload failed validation: {e}")
            return self._fallback(STATUS_INVALID, baseline, str(e))
        except (TypeError, ValueError) as e:
            logger.warning(f"Quote {query.quote_id}: pricing oracle payload unusable: {e}")
            return self._fallback(STATUS_INVALID, baseline, f"{type(e).__name__}: {e}")

        return self.merge(details, baseline, project_cargo=bool(prompt.context.get('project_cargo')))

    def merge(
        self,
        details: AIPricingDetails,
        baseline: SmartPriceSuggestion,
        project_cargo: bool = False
    ) -> OracleOutcome:
        """Apply guardrails and blend the oracle price with the baseline."""
        ai_price = details.recommended_price
        ai_confidence = AI_CONFIDENCE_SCORES[details.confidence]
        outcome = OracleOutcome(
            status=STATUS_OK,
            details=details,
            baseline_price=baseline.suggested_price,
            ai_price=ai_price,
            model_name=getattr(self.oracle, 'model_name', None),
        )

        if not baseline.has_price:
            outcome.final_price = round(ai_price, 2)
            outcome.final_confidence = ai_confidence
            outcome.range_low = details.floor_price or round(ai_price * 0.9, 2)
            outcome.range_high = details.ceiling_price or round(ai_price * 1.1, 2)
            outcome.oracle_weight = 1.0
            outcome.notes.append('No match-based baseline; using oracle price')
            return outcome

        base = baseline.suggested_price
        low = baseline.range_low if baseline.range_low is not None else base
        high = baseline.range_high if baseline.range_high is not None else base

        clamped = min(max(ai_price, low), high)
        if clamped != ai_price:
            outcome.notes.append(f'Oracle price {ai_price:,.0f} clamped to {clamped:,.0f}')

        tier = confidence_tier(baseline.confidence)
        ratio = clamped / base if base else 1.0

        if tier != 'LOW' and abs(ratio - 1.0) > MAX_DEVIATION:
            outcome.final_price = base
            outcome.final_confidence = baseline.confidence
            outcome.range_low, outcome.range_high = low, high
            outcome.notes.append(
                f'Oracle price deviates {ratio - 1.0:+.0%} from a {tier} confidence baseline; ignored'
            )
            return outcome

        if tier == 'LOW' and project_cargo:
            base_w, ai_w = BLEND_LOW_PROJECT_CARGO
        elif tier == 'LOW':
            base_w, ai_w = BLEND_LOW_CONFIDENCE
        else:
            base_w, ai_w = BLEND_DEFAULT

        outcome.final_price = round(base_w * base + ai_w * clamped, 2)
        outcome.final_confidence = round(base_w * baseline.confidence + ai_w * ai_confidence, 4)
        outcome.range_low, outcome.range_high = low, high
        outcome.oracle_weight = ai_w
        outcome.notes.append(f'Blended {base_w:.0%} baseline / {ai_w:.0%} oracle ({tier} baseline)')
        return outcome
