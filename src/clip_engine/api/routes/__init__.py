"""API route modules."""

from clip_engine.api.routes import ai, analytics, clips, health, schedule, users, videos

__all__ = ["ai", "analytics", "clips", "health", "schedule", "users", "videos"]
