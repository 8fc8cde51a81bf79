"""Model-agnostic LLM routing utilities."""

from .base import BaseProvider
from .gateway_provider import AI_GATEWAY_DEFAULT_BASE_URL, GatewayProvider, make_gateway_provider_from_settings
from .router import LLMRouter
from .types import LLMResponse, Task

__all__ = [
    "AI_GATEWAY_DEFAULT_BASE_URL",
    "BaseProvider",
    "GatewayProvider",
    "LLMResponse",
    "LLMRouter",
    "Task",
    "make_gateway_provider_from_settings",
]
