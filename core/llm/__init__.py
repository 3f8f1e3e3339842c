"""LLM Module - pricing oracle interface, OpenAI implementation and adapter."""
from core.llm.interfaces import PricingOracle
from core.llm.openai_service import OpenAIPricingOracle
from core.llm.oracle_adapter import PricingOracleAdapter, OracleOutcome
from core.llm.schema_models import AIPricingDetails

__all__ = ['PricingOracle', 'OpenAIPricingOracle', 'PricingOracleAdapter', 'OracleOutcome', 'AIPricingDetails']
