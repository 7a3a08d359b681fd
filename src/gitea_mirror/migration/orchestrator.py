"""Mirror orchestrator sequencing owner lookup, fetch and submission per mode."""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, Field

from ..api.exceptions import (
    ConfigurationError,
    EmptySourceError,
    MirrorAPIError,
    NotFoundError,
)
from ..api.pagination import FetchStrategy, PaginatedFetcher
from ..models.repository import OwnerRef, SourceRepository
from .context import RunContext
from .submitter import MigrationSubmitter
from .transformer import build_migration_request

_REPO_URL_PATTERNS = [
    re.compile(r'^https?://[^/]+/(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$'),
    re.compile(r'^git@[^:]+:(?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?$'),
    re.compile(r'^(?P<owner>[\w.-]+)/(?P<name>[\w.-]+?)(?:\.git)?$'),
]


class MirrorMode(str, Enum):
    """What to mirror."""

    ORG = 'org'
    USER = 'user'
    STAR = 'star'
    REPO = 'repo'


class RunState(str, Enum):
    """Orchestrator states."""

    RESOLVE_OWNER = 'resolve_owner'
    FETCH = 'fetch'
    SUBMIT = 'submit'
    DONE = 'done'
    ABORTED = 'aborted'


class MirrorPlan(BaseModel):
    """One mirror run as requested by the operator."""

    mode: MirrorMode = Field(..., description='Mirror mode')
    target: str = Field(
        ..., description='GitHub org, GitHub user, or repository URL depending on mode'
    )
    dest_owner: Optional[str] = Field(
        default=None, description='Gitea user owning the mirrors'
    )
    dest_org: Optional[str] = Field(
        default=None, description='Gitea organization owning the mirrors'
    )


class MirrorSummary(BaseModel):
    """Summary of one mirror run."""

    mode: MirrorMode = Field(..., description='Mirror mode')
    state: RunState = Field(default=RunState.RESOLVE_OWNER, description='Final state')
    owner: Optional[str] = Field(default=None, description='Destination owner')
    fetched: int = Field(default=0, description='Source repositories fetched')
    created: int = Field(default=0, description='Mirrors created')
    existing: int = Field(default=0, description='Mirrors that already existed')
    dry_run: int = Field(default=0, description='Requests logged but not sent')
    repositories: List[str] = Field(
        default_factory=list, description='Repositories submitted, in order'
    )

    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = Field(default=None)


def parse_repo_url(url: str) -> Tuple[str, str]:
    """Normalize a GitHub repository reference to ``(owner, name)``.

    Accepts ``https://github.com/owner/name``, an optional ``.git`` suffix,
    ``git@github.com:owner/name.git`` and bare ``owner/name``.

    Raises:
        ConfigurationError: If the reference cannot be parsed
    """
    url = url.strip()
    for pattern in _REPO_URL_PATTERNS:
        match = pattern.match(url)
        if match:
            return match.group('owner'), match.group('name')
    raise ConfigurationError(f'Not a GitHub repository URL: {url}')


class MirrorOrchestrator:
    """Runs one mirror mode from owner resolution through submission."""

    def __init__(self, context: RunContext):
        """Initialize mirror orchestrator.

        Args:
            context: Run context with clients and settings
        """
        self.context = context
        self.fetcher = PaginatedFetcher(
            context.source_client,
            per_page=context.per_page,
            scratch_dir=context.scratch_dir,
        )
        self.submitter = MigrationSubmitter(
            context.destination_client, dry_run=context.dry_run
        )
        self.logger = logger.bind(component='MirrorOrchestrator')
        self.summary: Optional[MirrorSummary] = None

    def run(self, plan: MirrorPlan) -> MirrorSummary:
        """Execute the plan.

        Args:
            plan: Mirror plan

        Returns:
            Summary of the run

        Raises:
            MirrorError: On any fatal error; the summary state is ABORTED
        """
        self.summary = MirrorSummary(mode=plan.mode)
        self.logger.info(f'Starting {plan.mode.value} mirror of {plan.target}')

        handlers = {
            MirrorMode.ORG: self._run_org,
            MirrorMode.USER: self._run_user,
            MirrorMode.STAR: self._run_star,
            MirrorMode.REPO: self._run_repo,
        }

        try:
            handlers[plan.mode](plan)
        except Exception as e:
            self._transition(RunState.ABORTED)
            self.summary.completed_at = datetime.now()
            self.logger.error(f'{plan.mode.value} mirror aborted: {e}')
            raise

        self._transition(RunState.DONE)
        self.summary.completed_at = datetime.now()
        self.logger.info(
            f'Mirror completed: {self.summary.created} created, '
            f'{self.summary.existing} already present, '
            f'{self.summary.fetched} fetched'
        )
        return self.summary

    def _run_org(self, plan: MirrorPlan) -> None:
        org = plan.dest_org or plan.target

        self._transition(RunState.RESOLVE_OWNER)
        self.submitter.create_organization(org, self.context.visibility)
        owner = self._resolve_owner(org, kind='org')

        self._transition(RunState.FETCH)
        result = self.fetcher.fetch_all(
            f'/orgs/{plan.target}/repos',
            strategy=FetchStrategy.TOLERANT_EMPTY,
            label=f'org-{plan.target}-repos',
        )
        if result.empty:
            raise EmptySourceError(
                f'No repositories found for GitHub organization {plan.target}; '
                'check the name and that the token can read it'
            )

        self._submit_all(result.items, owner)

    def _run_user(self, plan: MirrorPlan) -> None:
        self._transition(RunState.RESOLVE_OWNER)
        owner = self._resolve_bulk_owner(plan)

        self._transition(RunState.FETCH)
        endpoint, params = self._user_repos_endpoint(plan.target)
        result = self.fetcher.fetch_all(
            endpoint,
            params=params,
            strategy=FetchStrategy.TOLERANT_EMPTY,
            label=f'user-{plan.target}-repos',
        )
        if result.empty:
            self.logger.warning(f'GitHub user {plan.target} owns no repositories')

        self._submit_all(result.items, owner)

    def _run_star(self, plan: MirrorPlan) -> None:
        self._transition(RunState.RESOLVE_OWNER)
        owner = self._resolve_bulk_owner(plan)

        self._transition(RunState.FETCH)
        result = self.fetcher.fetch_all(
            f'/users/{plan.target}/starred',
            strategy=FetchStrategy.TOLERANT_EMPTY,
            label=f'user-{plan.target}-starred',
        )
        if result.empty:
            self.logger.warning(f'GitHub user {plan.target} has not starred anything')

        self._submit_all(result.items, owner)

    def _run_repo(self, plan: MirrorPlan) -> None:
        source_owner, name = parse_repo_url(plan.target)

        self._transition(RunState.FETCH)
        record = SourceRepository.model_validate(
            self.fetcher.fetch_one(f'/repos/{source_owner}/{name}')
        )

        # GitHub reports the canonical login, also after a transfer or rename.
        if record.owner is not None:
            source_owner = record.owner.login
        owner_name = plan.dest_org or plan.dest_owner or source_owner
        owner = OwnerRef(name=owner_name, kind='org' if plan.dest_org else 'user')
        self.summary.owner = owner.name

        self._transition(RunState.SUBMIT)
        self.summary.fetched = 1
        self._submit(record, owner, by_name=True)

    def _user_repos_endpoint(self, user: str) -> Tuple[str, Dict[str, Any]]:
        credentials = self.context.credentials
        if credentials.token and (
            not credentials.username
            or credentials.username.lower() == user.lower()
        ):
            return '/user/repos', {'affiliation': 'owner'}

        # Another account: only its public repositories are listable.
        return f'/users/{user}/repos', {'type': 'owner'}

    def _resolve_bulk_owner(self, plan: MirrorPlan) -> OwnerRef:
        if plan.dest_org:
            return self._resolve_owner(plan.dest_org, kind='org')
        return self._resolve_owner(plan.dest_owner or plan.target, kind='user')

    def _resolve_owner(self, name: str, kind: str) -> OwnerRef:
        endpoint = f'/orgs/{name}' if kind == 'org' else f'/users/{name}'

        try:
            response = self.context.destination_client.get(endpoint)
        except NotFoundError:
            if not self.context.dry_run:
                raise
            # The org would have been created by a real run.
            self.logger.warning(f'[dry run] Gitea {kind} {name} does not exist yet')
            owner = OwnerRef(name=name, kind=kind)
        else:
            if not isinstance(response.data, dict) or 'id' not in response.data:
                raise MirrorAPIError(
                    f'Expected a Gitea {kind} object from {endpoint}; '
                    'check that the Gitea URL points at a Gitea instance',
                    status_code=response.status_code,
                    response_data=response.data,
                )
            owner = OwnerRef(name=name, id=response.data['id'], kind=kind)

        self.summary.owner = owner.name
        self.logger.info(f'Resolved Gitea {kind} {name} (id={owner.id})')
        return owner

    def _submit_all(self, items: List[Dict[str, Any]], owner: OwnerRef) -> None:
        self._transition(RunState.SUBMIT)

        seen = set()
        for item in items:
            record = SourceRepository.model_validate(item)
            key = record.display_name.lower()
            if key in seen:
                self.logger.debug(f'Skipping duplicate listing of {key}')
                continue
            seen.add(key)

            self.summary.fetched += 1
            self._submit(record, owner, by_name=owner.id is None)

    def _submit(self, record: SourceRepository, owner: OwnerRef, by_name: bool) -> None:
        if record.is_private and not self.context.credentials.complete:
            self.logger.warning(
                f'{record.display_name} is private but no GitHub username and '
                'token are configured; Gitea will not be able to pull it'
            )
        if record.archived:
            self.logger.info(
                f'{record.display_name} is archived on GitHub; '
                'the mirror will not receive new commits'
            )
        if record.fork:
            self.logger.info(f'{record.display_name} is a fork')

        request = build_migration_request(
            record,
            owner,
            self.context.options,
            self.context.credentials,
            by_name=by_name,
        )
        result = self.submitter.submit(request)

        self.summary.repositories.append(record.display_name)
        if result.dry_run:
            self.summary.dry_run += 1
        elif result.created:
            self.summary.created += 1
        else:
            self.summary.existing += 1

    def _transition(self, state: RunState) -> None:
        self.logger.debug(f'State {self.summary.state.value} -> {state.value}')
        self.summary.state = state
