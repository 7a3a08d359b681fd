"""Per-run state shared by the mirror components."""

import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from ..api.client import GiteaClient, GitHubClient
from ..models.repository import MigrationOptions, SourceCredentials


class RunContext(BaseModel):
    """Everything one mirror run needs, passed explicitly to each component."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source_client: GitHubClient = Field(..., description='GitHub client')
    destination_client: GiteaClient = Field(..., description='Gitea client')
    scratch_dir: Path = Field(..., description='Directory for raw page dumps')

    credentials: SourceCredentials = Field(
        default_factory=SourceCredentials, description='GitHub credentials'
    )
    options: MigrationOptions = Field(
        default_factory=MigrationOptions, description='Optional content to migrate'
    )
    visibility: str = Field(default='public', description='New org visibility')
    per_page: int = Field(default=100, description='Page size for list endpoints')
    dry_run: bool = Field(default=False, description='Log payloads only')


@contextmanager
def scratch_directory(base_dir: Optional[str] = None) -> Iterator[Path]:
    """Create a scratch directory that is removed however the run ends.

    Args:
        base_dir: Parent directory (system temp directory if omitted)

    Yields:
        Path of the scratch directory
    """
    with tempfile.TemporaryDirectory(prefix='gitea-mirror-', dir=base_dir) as path:
        logger.debug(f'Created scratch directory {path}')
        try:
            yield Path(path)
        finally:
            logger.debug(f'Removing scratch directory {path}')
