# ruff: noqa: N999
"""
Domain Layer

Contains pure business logic organized by bounded contexts:
- shared/: Cross-cutting exceptions, events and constrained types
- music/: Song, playlist and queue domain logic
"""

from discord_queue_player.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
