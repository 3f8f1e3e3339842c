#!/usr/bin/env python3
"""
Feedback Module - human feedback ledger and weight learning.

Public API:
- FeedbackData, LearningReport, PricingOutcome: Data structures

Modules (import directly):
- aggregation.py: Pure FeedbackData aggregation from feedback rows
- learner.py: FeedbackLearner and record_pricing_outcome
- schedule.py: Injectable learning trigger policies
- weight_store.py: Lock-guarded access to the active weight vector
"""

from core.feedback.models import (
    FeedbackData,
    RatedMatch,
    WeightAdjustment,
    LearningReport,
    PricingOutcome,
    FEEDBACK_REASONS,
)

__all__ = [
    'FeedbackData',
    'RatedMatch',
    'WeightAdjustment',
    'LearningReport',
    'PricingOutcome',
    'FEEDBACK_REASONS',
]
