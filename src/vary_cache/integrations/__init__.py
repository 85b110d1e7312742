"""
Framework integrations for vary_cache.
"""
from .fastapi import STATE_KEY, VaryCacheMiddleware, get_vary_cache

__all__ = [
    "STATE_KEY",
    "VaryCacheMiddleware",
    "get_vary_cache",
]
