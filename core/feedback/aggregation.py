#!/usr/bin/env python3
"""
Feedback aggregation.

Rolls individual MatchFeedback rows up into one FeedbackData per
historical quote. Only the matched side of each match counts: a quote
earns feedback when it was offered as a match, not when it was the query.
"""

from typing import Any, Dict, Iterable, Mapping

from core.feedback.models import FeedbackData


def aggregate_feedback(rows: Iterable[Mapping[str, Any]]) -> Dict[int, FeedbackData]:
    """
    Aggregate feedback rows keyed by matched quote id.

    Each row needs 'matched_quote_id' and 'rating'; 'feedback_reason' and
    'actual_price_used' are optional.
    """
    result: Dict[int, FeedbackData] = {}
    rating_sums: Dict[int, float] = {}

    for row in rows:
        quote_id = int(row['matched_quote_id'])
        rating = int(row['rating'])
        data = result.get(quote_id)
        if data is None:
            data = FeedbackData(quote_id=quote_id)
            result[quote_id] = data
            rating_sums[quote_id] = 0.0

        data.total_feedback_count += 1
        if rating > 0:
            data.positive_feedback_count += 1
        elif rating < 0:
            data.negative_feedback_count += 1
        rating_sums[quote_id] += rating

        reason = row.get('feedback_reason')
        if reason:
            data.feedback_reasons.append(reason)

        price = row.get('actual_price_used')
        if price is not None and float(price) > 0:
            data.actual_prices_used.append(float(price))

    for quote_id, data in result.items():
        data.average_rating = rating_sums[quote_id] / data.total_feedback_count

    return result
