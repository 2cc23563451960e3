"""HTTP surface: news, chat and health routers plus the per-client rate limiter."""
