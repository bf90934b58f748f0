from promptcoach.llm.factory import build_registry, get_provider
from promptcoach.llm.manager import rewrite_with_fallback

__all__ = ["build_registry", "get_provider", "rewrite_with_fallback"]
