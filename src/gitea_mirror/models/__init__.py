"""Data models for GitHub and Gitea entities."""

from .repository import (
    MigrationOptions,
    MigrationRequest,
    OwnerRef,
    SourceCredentials,
    SourceOwner,
    SourceRepository,
)

__all__ = [
    'MigrationOptions',
    'MigrationRequest',
    'OwnerRef',
    'SourceCredentials',
    'SourceOwner',
    'SourceRepository',
]
