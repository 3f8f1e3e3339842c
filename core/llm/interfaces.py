"""
Pricing Oracle Interface - Abstract base for external AI pricing services.

This module defines the interface the Pricing-Oracle Adapter talks to
(OpenAI, Ollama or any OpenAI-compatible endpoint).
"""
from abc import ABC, abstractmethod
from typing import Dict, Any

from core.llm.pricing_prompt import PricingPrompt


class PricingOracle(ABC):
    """
    Abstract Interface for AI pricing providers.
    """

    model_name: str = "unknown"

    @abstractmethod
    def request_pricing(self, prompt: PricingPrompt) -> Dict[str, Any]:
        """
        Send a pricing prompt and return the raw decoded JSON payload.

        Implementations raise OracleUnavailableError for transport failures
        and timeouts, and OracleResponseError when the body is not JSON.
        The payload is untrusted; validation happens in the adapter.
        """
        pass
