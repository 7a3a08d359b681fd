"""Creation of mirrors and organizations in Gitea."""

from loguru import logger
from pydantic import BaseModel, Field

from ..api.client import GiteaClient
from ..models.repository import MigrationRequest


class SubmitResult(BaseModel):
    """Outcome of one create call."""

    name: str = Field(..., description='Repository or organization name')
    created: bool = Field(..., description='Resource was created by this call')
    dry_run: bool = Field(default=False, description='Nothing was sent')


class MigrationSubmitter:
    """Issues create calls to Gitea; existing resources count as success."""

    def __init__(self, client: GiteaClient, dry_run: bool = False):
        self.client = client
        self.dry_run = dry_run
        self.logger = logger.bind(component='MigrationSubmitter')

    def submit(self, request: MigrationRequest) -> SubmitResult:
        """Create one mirror.

        Args:
            request: Migration request for the repository

        Returns:
            Submission result (``created`` is False if the mirror already existed)
        """
        self.logger.info(f'Mirroring {request.repo_name} from {request.clone_addr}')

        if self.dry_run:
            self.logger.info(
                f'[dry run] would submit {request.to_payload(include_secrets=False)}'
            )
            return SubmitResult(name=request.repo_name, created=False, dry_run=True)

        response = self.client.post(
            '/repos/migrate', data=request.to_payload(), resend_on_timeout=False
        )

        if response.already_exists:
            self.logger.info(f'{request.repo_name} already exists, skipping')
            return SubmitResult(name=request.repo_name, created=False)

        self.logger.info(f'Created mirror {request.repo_name}')
        return SubmitResult(name=request.repo_name, created=True)

    def create_organization(self, name: str, visibility: str = 'public') -> SubmitResult:
        """Create an organization, tolerating one that already exists.

        Args:
            name: Organization name
            visibility: public, limited or private

        Returns:
            Submission result
        """
        self.logger.info(f'Creating organization {name} ({visibility})')

        if self.dry_run:
            self.logger.info(f'[dry run] would create organization {name}')
            return SubmitResult(name=name, created=False, dry_run=True)

        response = self.client.post(
            '/orgs', data={'username': name, 'visibility': visibility}
        )

        if response.already_exists:
            self.logger.info(f'Organization {name} already exists')
            return SubmitResult(name=name, created=False)

        return SubmitResult(name=name, created=True)
