"""
Rate limiting middleware using slowapi
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

# Generation calls hit a shared local model; keep them scarce per client
AI_RATE_LIMIT = os.getenv("AI_RATE_LIMIT", "30/hour")

limiter = Limiter(key_func=get_remote_address)


def ai_generation_limit(limit_value: str = None):
    """Rate limit for AI generation endpoints.

    Every route decorated with this draws on one budget per client, not one
    budget per route.
    """
    return limiter.shared_limit(limit_value or AI_RATE_LIMIT, scope="ai")
