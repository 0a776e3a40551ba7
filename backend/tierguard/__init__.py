"""TierGuard — storage health & consistency service for cache/NAS tiers."""

__version__ = "0.1.0"
