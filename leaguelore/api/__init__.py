from .client import RateLimiter, SleeperClient

__all__ = ["RateLimiter", "SleeperClient"]
