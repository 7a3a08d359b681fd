"""Repository entity models."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DESCRIPTION_MAX_LENGTH = 255


class SourceOwner(BaseModel):
    """Owner block of a GitHub repository."""

    model_config = ConfigDict(frozen=True, extra='ignore')

    login: str = Field(..., description='Owner login')


class SourceRepository(BaseModel):
    """GitHub repository as returned by the REST API."""

    model_config = ConfigDict(frozen=True, extra='ignore')

    name: str = Field(..., description='Repository name')
    full_name: Optional[str] = Field(default=None, description='owner/name')
    clone_url: str = Field(..., description='HTTPS clone URL')
    description: Optional[str] = Field(default=None, description='Description')
    private: bool = Field(default=False, description='Repository is private')
    visibility: Optional[str] = Field(
        default=None, description='public, private or internal'
    )
    owner: Optional[SourceOwner] = Field(default=None, description='Repository owner')
    fork: bool = Field(default=False, description='Repository is a fork')
    archived: bool = Field(default=False, description='Repository is archived')

    @property
    def is_private(self) -> bool:
        return self.private or self.visibility == 'private'

    @property
    def display_name(self) -> str:
        return self.full_name or self.name


class OwnerRef(BaseModel):
    """Gitea user or organization that owns created mirrors."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description='Gitea user or organization name')
    id: Optional[int] = Field(default=None, description='Gitea numeric ID')
    kind: str = Field(default='user', description='user or org')


class MigrationOptions(BaseModel):
    """Optional content to migrate alongside the git data."""

    issues: bool = Field(default=False, description='Migrate issues')
    pull_requests: bool = Field(default=False, description='Migrate pull requests')
    releases: bool = Field(default=False, description='Migrate releases')
    lfs: bool = Field(default=False, description='Mirror LFS objects')
    lfs_endpoint: Optional[str] = Field(
        default=None, description='Custom LFS server endpoint'
    )
    labels: bool = Field(default=False, description='Migrate labels')
    milestones: bool = Field(default=False, description='Migrate milestones')

    @field_validator('lfs_endpoint')
    @classmethod
    def validate_lfs_endpoint(cls, v):
        """Validate LFS endpoint URL format."""
        if v is not None and not v.startswith(('http://', 'https://')):
            raise ValueError('LFS endpoint must start with http:// or https://')
        return v


class SourceCredentials(BaseModel):
    """GitHub credentials handed to Gitea for private repositories."""

    model_config = ConfigDict(frozen=True)

    username: Optional[str] = Field(default=None, description='GitHub username')
    token: Optional[SecretStr] = Field(default=None, description='GitHub token')

    @property
    def complete(self) -> bool:
        return bool(self.username and self.token)


class MigrationRequest(BaseModel):
    """Body of ``POST /api/v1/repos/migrate``."""

    model_config = ConfigDict(frozen=True)

    clone_addr: str = Field(..., description='Source clone URL')
    repo_name: str = Field(..., description='Repository name in Gitea')
    service: str = Field(default='github', description='Source service type')
    mirror: bool = Field(default=True, description='Create a pull mirror')
    private: bool = Field(default=False, description='Repository is private')
    description: str = Field(default='', description='Repository description')
    wiki: bool = Field(default=True, description='Migrate the wiki')
    issues: bool = Field(default=False, description='Migrate issues')
    pull_requests: bool = Field(default=False, description='Migrate pull requests')
    releases: bool = Field(default=False, description='Migrate releases')
    lfs: bool = Field(default=False, description='Mirror LFS objects')
    lfs_endpoint: Optional[str] = Field(default=None, description='LFS endpoint')
    labels: bool = Field(default=False, description='Migrate labels')
    milestones: bool = Field(default=False, description='Migrate milestones')
    uid: Optional[int] = Field(default=None, description='Owner ID (bulk modes)')
    repo_owner: Optional[str] = Field(
        default=None, description='Owner name (single repository mode)'
    )
    auth_username: Optional[str] = Field(default=None, description='Source username')
    auth_password: Optional[SecretStr] = Field(
        default=None, description='Source token'
    )

    @field_validator('description', mode='before')
    @classmethod
    def truncate_description(cls, v):
        """Gitea rejects descriptions longer than 255 characters."""
        if v is None:
            return ''
        return v[:DESCRIPTION_MAX_LENGTH]

    def to_payload(self, include_secrets: bool = True) -> Dict[str, Any]:
        """Serialize for the Gitea API, dropping unset fields.

        Args:
            include_secrets: Reveal ``auth_password``; disable for logging

        Returns:
            JSON-ready request body
        """
        payload = self.model_dump(exclude_none=True)
        if 'auth_password' in payload:
            payload['auth_password'] = (
                self.auth_password.get_secret_value() if include_secrets else '***'
            )
        return payload
