"""Business logic services."""

from .playground_service import PlaygroundService

__all__ = ["PlaygroundService"]
