"""Mapping of GitHub repositories onto Gitea migration requests."""

from typing import Any, Dict, Union

from ..models.repository import (
    MigrationOptions,
    MigrationRequest,
    OwnerRef,
    SourceCredentials,
    SourceRepository,
)


def build_migration_request(
    record: Union[SourceRepository, Dict[str, Any]],
    owner: OwnerRef,
    options: MigrationOptions,
    credentials: SourceCredentials,
    by_name: bool = False,
) -> MigrationRequest:
    """Build the mirror request for one source repository.

    Private repositories carry the operator's GitHub credentials so Gitea can
    pull from them; public ones carry no auth fields at all.

    Args:
        record: GitHub repository (raw API object or parsed model)
        owner: Destination owner
        options: Optional content to migrate
        credentials: GitHub credentials for private repositories
        by_name: Attach the owner by name instead of numeric ID

    Returns:
        Migration request ready for submission
    """
    if not isinstance(record, SourceRepository):
        record = SourceRepository.model_validate(record)

    fields: Dict[str, Any] = {
        'clone_addr': record.clone_url,
        'repo_name': record.name,
        'mirror': True,
        'wiki': True,
        'private': record.is_private,
        'description': record.description,
        'issues': options.issues,
        'pull_requests': options.pull_requests,
        'releases': options.releases,
        'lfs': options.lfs,
        'labels': options.labels,
        'milestones': options.milestones,
    }

    if options.lfs and options.lfs_endpoint:
        fields['lfs_endpoint'] = options.lfs_endpoint

    if by_name:
        fields['repo_owner'] = owner.name
    else:
        if owner.id is None:
            raise ValueError(f'Owner {owner.name} has no resolved ID')
        fields['uid'] = owner.id

    if record.is_private:
        fields['auth_username'] = credentials.username
        fields['auth_password'] = credentials.token

    return MigrationRequest(**fields)
