"""Mirror engine - main entry point for mirror operations."""

from typing import Callable, Optional

from loguru import logger

from ..api.client import GiteaClient, GitHubClient
from ..api.retry import BackoffRetrier
from ..config.config import Config
from ..models.repository import SourceCredentials
from .context import RunContext, scratch_directory
from .orchestrator import MirrorOrchestrator, MirrorPlan, MirrorSummary


class MirrorEngine:
    """Builds the clients and run context, then hands over to the orchestrator."""

    def __init__(
        self,
        config: Config,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """Initialize mirror engine.

        Args:
            config: Mirror configuration
            sleep: Sleep function for backoff (``time.sleep`` if omitted)
        """
        self.config = config
        self.logger = logger.bind(component='MirrorEngine')

        retrier_kwargs = {'sleep': sleep} if sleep is not None else {}
        retrier = BackoffRetrier(config.retry, **retrier_kwargs)

        # GiteaClient rejects a missing token before opening its session.
        self.destination_client = GiteaClient(config.gitea, retrier)
        try:
            self.source_client = GitHubClient(config.github, retrier)
        except Exception:
            self.destination_client.close()
            raise

    def run(self, plan: MirrorPlan) -> MirrorSummary:
        """Execute one mirror run.

        The scratch directory and both client sessions are released whether
        the run completes or aborts.

        Args:
            plan: Mirror plan

        Returns:
            Mirror summary
        """
        mode = 'dry run' if self.config.mirror.dry_run else 'mirror'
        self.logger.info(f'Starting {mode}: {plan.mode.value} {plan.target}')

        try:
            with scratch_directory() as scratch_dir:
                context = RunContext(
                    source_client=self.source_client,
                    destination_client=self.destination_client,
                    scratch_dir=scratch_dir,
                    credentials=SourceCredentials(
                        username=self.config.github.username,
                        token=self.config.github.token,
                    ),
                    options=self.config.mirror.options,
                    visibility=self.config.mirror.visibility,
                    per_page=self.config.github.per_page,
                    dry_run=self.config.mirror.dry_run,
                )
                return MirrorOrchestrator(context).run(plan)
        finally:
            self.close()

    def close(self) -> None:
        """Close both client sessions."""
        self.source_client.close()
        self.destination_client.close()
