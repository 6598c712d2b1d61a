"""Components for a zero-downtime deployment HTTP proxy: middleware, buffering, cookie scoping, pause and rollout control, metrics, error pages, health checks and deploy settings."""

__version__ = "0.1.0"