"""
Service Layer

- ai_result_service: cache-aside orchestration (AIResultService)
- single_flight: coalescing of concurrent misses
"""

from lingua_cache.services.ai_result_service import AIResultService
from lingua_cache.services.single_flight import SingleFlight

__all__ = ["AIResultService", "SingleFlight"]
