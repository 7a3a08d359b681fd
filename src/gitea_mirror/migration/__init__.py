"""Mirror engine, orchestrator and the components it sequences."""

from .transformer import build_migration_request
from .submitter import MigrationSubmitter, SubmitResult
from .context import RunContext, scratch_directory
from .orchestrator import (
    MirrorMode,
    MirrorOrchestrator,
    MirrorPlan,
    MirrorSummary,
    RunState,
    parse_repo_url,
)
from .engine import MirrorEngine

__all__ = [
    'build_migration_request',
    'MigrationSubmitter',
    'SubmitResult',
    'RunContext',
    'scratch_directory',
    'MirrorMode',
    'MirrorOrchestrator',
    'MirrorPlan',
    'MirrorSummary',
    'RunState',
    'parse_repo_url',
    'MirrorEngine',
]
