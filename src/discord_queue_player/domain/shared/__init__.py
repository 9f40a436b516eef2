"""
Shared Domain Kernel

Contains exceptions, events and constrained types shared across the package.
"""

from discord_queue_player.domain.shared.exceptions import (
    DomainError,
    PlaybackError,
    PlaybackErrorKind,
    PlaylistConstructionError,
    QueueOperationError,
    ResolutionError,
)

__all__ = [
    "DomainError",
    "ResolutionError",
    "PlaylistConstructionError",
    "QueueOperationError",
    "PlaybackError",
    "PlaybackErrorKind",
]
