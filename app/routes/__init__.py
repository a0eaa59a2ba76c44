"""API routes."""

from app.routes import comments, delegations, health, requests, users

__all__ = ["comments", "delegations", "health", "requests", "users"]
