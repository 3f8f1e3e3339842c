"""
Pricing prompt construction.

build_pricing_prompt() turns a query quote, its top matches and the
algorithmic baseline into a PricingPrompt. The context dict carries the
same facts in machine-readable form for logging and for the adapter's
guardrails.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from core.feedback.models import FeedbackData
from core.normalizer import NormalizedQuote, CargoCategory
from core.normalizer.geo import distance_category
from core.llm.system_prompts import PRICING_SYSTEM_PROMPT

MAX_PROMPT_MATCHES = 5
PROJECT_CARGO_MILES = 400


@dataclass
class PricingPrompt:
    system: str
    user: str
    context: Dict[str, Any] = field(default_factory=dict)

    def messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def price_statistics(prices: Sequence[float], best_price: Optional[float] = None) -> Dict[str, Any]:
    """Median, 20% trimmed mean, sample stddev and an outlier flag for the best match."""
    arr = np.array([p for p in prices if p is not None and p > 0], dtype=float)
    if arr.size == 0:
        return {}

    ordered = np.sort(arr)
    if ordered.size >= 3:
        k = int(ordered.size * 0.2)
        trimmed = ordered[k:max(k + 1, ordered.size - k)]
    else:
        trimmed = ordered

    median = float(np.median(ordered))
    stats: Dict[str, Any] = {
        'count': int(arr.size),
        'min': float(ordered[0]),
        'max': float(ordered[-1]),
        'median': median,
        'mean': float(arr.mean()),
        'trimmed_mean': float(trimmed.mean()),
        'stddev': float(arr.std(ddof=1)) if arr.size >= 2 else None,
    }

    if best_price and median > 0:
        ratio = best_price / median
        stats['best_vs_median_ratio'] = round(ratio, 2)
        if ratio < 0.6:
            stats['outlier_warning'] = 'Best match price looks TOO LOW vs median.'
        elif ratio > 1.8:
            stats['outlier_warning'] = 'Best match price looks TOO HIGH vs median.'
    return stats


def _location(city, state, country) -> str:
    parts = [p for p in (city, state, country) if p]
    return ', '.join(parts) if parts else 'Unknown'


def _fmt(value: Optional[float]) -> str:
    return f"{value:,.0f}" if value is not None else 'N/A'


def build_pricing_prompt(
    query: NormalizedQuote,
    matches: Sequence[Any],
    baseline: Optional[Any] = None,
    feedback_data: Optional[Dict[int, FeedbackData]] = None,
) -> PricingPrompt:
    """Build the pricing prompt for the oracle.

    Args:
        query: Normalized query quote
        matches: Ranked ScoredQuoteMatch list
        baseline: Optional SmartPriceSuggestion used as floor/target/ceiling
        feedback_data: Optional quote_id -> FeedbackData for the matched quotes
    """
    q = query.quote
    feedback_data = feedback_data or {}
    top = list(matches)[:MAX_PROMPT_MATCHES]

    prices = [m.suggested_price for m in matches if m.suggested_price]
    best_price = top[0].suggested_price if top else None
    stats = price_statistics(prices, best_price)

    lines = ["## NEW QUOTE REQUEST"]
    lines.append(f"- Route: {_location(q.origin_city, q.origin_state_province, q.origin_country)} -> "
                 f"{_location(q.destination_city, q.destination_state_province, q.destination_country)}")
    if query.lane_miles is not None:
        lines.append(f"- Route Distance: {query.lane_miles:,.0f} miles ({distance_category(query.lane_miles)})")
    lines.append(f"- Service Type: {q.service_type or 'Not specified'} (normalized {query.service.value})")
    lines.append(f"- Cargo: {q.cargo_description or 'Not specified'} (category {query.cargo.value})")
    lines.append(f"- Weight: {q.cargo_weight or 'Not specified'} {q.weight_unit or ''}".rstrip())
    lines.append(f"- Pieces: {q.number_of_pieces or 'Not specified'}")
    lines.append(f"- Hazmat: {'Yes' if q.hazardous_material else 'No/Not specified'}")
    lines.append(f"- Dimensions (LxWxH): {q.cargo_length or 'N/A'}x{q.cargo_width or 'N/A'}x"
                 f"{q.cargo_height or 'N/A'} {q.dimension_unit or ''}".rstrip())
    if query.container_type:
        lines.append(f"- Equipment: {query.container_type}")
    if query.out_of_gauge:
        lines.append("- Out of gauge: Yes (permits, escorts or special equipment likely)")

    project_cargo = (
        query.cargo in (CargoCategory.MACHINERY, CargoCategory.OVERSIZED)
        and query.lane_miles is not None
        and query.lane_miles >= PROJECT_CARGO_MILES
    )
    if project_cargo and (not q.cargo_weight or not (q.cargo_length and q.cargo_width and q.cargo_height)):
        lines += [
            "",
            "## PROJECT CARGO PRICING NOTE",
            f"- Cargo appears to be {query.cargo.value} on a long-haul route with missing weight or dimensions.",
            "- Do not assume light or general freight; include a risk buffer for unknown specs.",
        ]

    lines += ["", "## HISTORICAL MATCHES"]
    if not top:
        lines.append("- None above the similarity threshold.")
    for i, match in enumerate(top, 1):
        c = match.candidate
        fb = feedback_data.get(c.quote_id)
        fb_text = ""
        if fb and fb.total_feedback_count:
            fb_text = f", feedback +{fb.positive_feedback_count}/-{fb.negative_feedback_count}"
            if fb.actual_prices_used:
                fb_text += f", verified price {_fmt(fb.actual_prices_used[-1])}"
        lines.append(
            f"{i}. score {match.similarity_score:.2f}: "
            f"{_location(c.origin_city, c.origin_state_province, c.origin_country)} -> "
            f"{_location(c.destination_city, c.destination_state_province, c.destination_country)}, "
            f"{c.service_type or 'n/a'}, {c.cargo_description or 'n/a'}, "
            f"quoted {_fmt(c.initial_quote_amount)}, final {_fmt(c.final_agreed_price)}, "
            f"suggested {_fmt(match.suggested_price)}{fb_text}"
        )

    if stats:
        lines += [
            "",
            "## HISTORICAL PRICE STATS",
            f"- count_prices: {stats['count']}",
            f"- best_match_price: {_fmt(best_price)}",
            f"- min_price: {_fmt(stats['min'])}",
            f"- median_price: {_fmt(stats['median'])}",
            f"- trimmed_mean_price: {_fmt(stats['trimmed_mean'])}",
            f"- max_price: {_fmt(stats['max'])}",
            f"- stddev_price: {_fmt(stats['stddev'])}",
        ]
        if stats.get('outlier_warning'):
            lines.append(f"- outlier_warning: {stats['outlier_warning']}")

    if baseline is not None and getattr(baseline, 'suggested_price', None):
        lines += [
            "",
            "## ALGORITHMIC BASELINE (REFERENCE, NOT A HARD ANCHOR)",
            f"- recommended_price: {_fmt(baseline.suggested_price)}",
            f"- floor_price: {_fmt(baseline.range_low)}",
            f"- ceiling_price: {_fmt(baseline.range_high)}",
            f"- confidence: {baseline.confidence:.2f}",
        ]
        for note in baseline.adjustments:
            lines.append(f"- note: {note}")

    lines += ["", "Return ONLY the JSON object."]

    context = {
        'quote_id': q.quote_id,
        'lane_miles': query.lane_miles,
        'service': query.service.value,
        'cargo_category': query.cargo.value,
        'project_cargo': project_cargo,
        'match_count': len(matches),
        'price_stats': stats,
        'baseline_price': getattr(baseline, 'suggested_price', None) if baseline is not None else None,
    }

    return PricingPrompt(system=PRICING_SYSTEM_PROMPT, user="\n".join(lines), context=context)
