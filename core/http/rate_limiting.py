"""
Rate limiting utilities for external API calls.
"""

from aiolimiter import AsyncLimiter

# Google Maps Platform web services allow far more, but one screen never
# needs more than a handful of calls per second
google_rate_limiter = AsyncLimiter(10, 1)
