"""
Model Invocation Layer

- gemini_client: google-generativeai wrapper with error mapping
- prompts: per-kind prompt templates
- response_parser: fence stripping and pydantic validation
- invoker: MultimodalInvoker tying the above together
"""

from lingua_cache.llm.gemini_client import GeminiClient
from lingua_cache.llm.invoker import MultimodalInvoker, encoded_payload_size
from lingua_cache.llm.response_parser import parse_result, strip_code_fences

__all__ = ["GeminiClient", "MultimodalInvoker", "encoded_payload_size", "parse_result", "strip_code_fences"]
