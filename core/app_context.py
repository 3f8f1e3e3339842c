import logging
from dataclasses import dataclass
from typing import Callable, Optional

from core.config_loader import AppConfig, LlmConfig
from core.feedback.learner import FeedbackLearner
from core.feedback.schedule import LearningSchedule, schedule_from_config
from core.feedback.weight_store import WeightStore
from core.llm.openai_service import OpenAIPricingOracle
from core.llm.oracle_adapter import PricingOracleAdapter
from core.scorer.service import SimilarityScorer
from database.uow import quote_uow
from pipeline.runner import BatchOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    This eliminates duplicate wiring code and provides a single source
    of truth for service instantiation. DB access is obtained via the
    unit-of-work factory inside each processing step.
    """
    config: AppConfig
    uow_factory: Callable
    weight_store: WeightStore
    scorer: SimilarityScorer
    oracle_adapter: PricingOracleAdapter
    learner: FeedbackLearner
    schedule: LearningSchedule
    orchestrator: BatchOrchestrator

    @classmethod
    def build(cls, config: AppConfig, uow_factory: Optional[Callable] = None) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            uow_factory: Unit-of-work factory; defaults to quote_uow

        Returns:
            Fully wired AppContext instance (no DB session attached)
        """
        uow_factory = uow_factory or quote_uow
        matching = config.matching

        weight_store = WeightStore(uow_factory, refresh_seconds=config.learning.weights_refresh_seconds)
        scorer = SimilarityScorer(
            config=matching.scorer,
            result_policy=matching.result_policy,
            pricing_config=matching.pricing,
        )
        oracle_adapter = PricingOracleAdapter(cls._build_pricing_oracle(config.llm))
        learner = FeedbackLearner(weight_store, config.learning)
        schedule = schedule_from_config(config.learning)

        orchestrator = BatchOrchestrator(
            scorer=scorer,
            weight_store=weight_store,
            oracle_adapter=oracle_adapter,
            learner=learner,
            schedule=schedule,
            matching_config=matching,
            uow_factory=uow_factory,
            max_workers=config.pipeline.max_workers,
        )

        return cls(
            config=config,
            uow_factory=uow_factory,
            weight_store=weight_store,
            scorer=scorer,
            oracle_adapter=oracle_adapter,
            learner=learner,
            schedule=schedule,
            orchestrator=orchestrator,
        )

    @staticmethod
    def _build_pricing_oracle(llm_config: LlmConfig) -> Optional[OpenAIPricingOracle]:
        """Build the OpenAI pricing oracle, or None when it is disabled or has no endpoint."""
        if not llm_config.enabled:
            logger.info("Pricing oracle disabled in config")
            return None
        if not llm_config.api_key and not llm_config.base_url:
            logger.info("Pricing oracle not configured (no api_key or base_url); using match-based pricing only")
            return None

        return OpenAIPricingOracle(
            api_key=llm_config.api_key,
            base_url=llm_config.base_url,
            model=llm_config.pricing_model,
            temperature=llm_config.temperature,
            timeout_seconds=llm_config.timeout_seconds,
            max_attempts=llm_config.max_attempts,
        )
