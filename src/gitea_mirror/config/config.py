"""Configuration management for gitea-mirror."""

from typing import Optional, Dict, Any
from pathlib import Path
import os

from pydantic import BaseModel, ConfigDict, Field, field_validator
import yaml
from dotenv import load_dotenv

from ..api.retry import RetryPolicy
from ..models.repository import MigrationOptions

VISIBILITIES = ('public', 'limited', 'private')


class GitHubConfig(BaseModel):
    """Configuration for the GitHub source API."""

    url: str = Field(default='https://api.github.com', description='GitHub API URL')
    username: Optional[str] = Field(default=None, description='GitHub username')
    token: Optional[str] = Field(default=None, description='Personal access token')
    timeout: float = Field(default=30, description='Request timeout in seconds')
    per_page: int = Field(default=100, description='Page size for list endpoints')

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate GitHub API URL format."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        return v.rstrip('/')

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError('Timeout must be positive')
        return v

    @field_validator('per_page')
    @classmethod
    def validate_per_page(cls, v):
        """GitHub caps page size at 100."""
        if not 1 <= v <= 100:
            raise ValueError('per_page must be between 1 and 100')
        return v


class GiteaConfig(BaseModel):
    """Configuration for the Gitea destination instance."""

    url: str = Field(..., description='Gitea instance URL')
    token: str = Field(..., description='Gitea access token')
    # Migrate calls block until Gitea finishes the initial clone.
    timeout: Optional[float] = Field(
        default=None, description='Request timeout in seconds, unset waits indefinitely'
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Validate Gitea URL format and drop any API suffix."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError('URL must start with http:// or https://')
        v = v.rstrip('/')
        if v.endswith('/api/v1'):
            v = v[: -len('/api/v1')]
        return v

    @field_validator('token')
    @classmethod
    def validate_token(cls, v):
        """Reject empty tokens."""
        if not v or not v.strip():
            raise ValueError('Gitea token must not be empty')
        return v.strip()

    @field_validator('timeout')
    @classmethod
    def validate_timeout(cls, v):
        """Validate timeout is positive."""
        if v is not None and v <= 0:
            raise ValueError('Timeout must be positive')
        return v


class MirrorSettings(BaseModel):
    """Mirror-specific configuration."""

    visibility: str = Field(
        default='public', description='Visibility of organizations created in Gitea'
    )
    dry_run: bool = Field(default=False, description='Log payloads without submitting')
    options: MigrationOptions = Field(
        default_factory=MigrationOptions, description='Extra content to migrate'
    )

    @field_validator('visibility')
    @classmethod
    def validate_visibility(cls, v):
        """Validate organization visibility."""
        if v.lower() not in VISIBILITIES:
            raise ValueError(f'Visibility must be one of: {list(VISIBILITIES)}')
        return v.lower()


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default='INFO', description='Log level')
    file: Optional[str] = Field(default=None, description='Log file path')
    format: Optional[str] = Field(default=None, description='Log format')

    @field_validator('level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f'Log level must be one of: {valid_levels}')
        return v.upper()


class Config(BaseModel):
    """Main configuration class for gitea-mirror."""

    model_config = ConfigDict(extra='forbid')

    github: GitHubConfig = Field(
        default_factory=GitHubConfig, description='GitHub source API'
    )
    gitea: GiteaConfig = Field(..., description='Gitea destination instance')
    retry: RetryPolicy = Field(
        default_factory=RetryPolicy, description='Backoff settings'
    )
    mirror: MirrorSettings = Field(
        default_factory=MirrorSettings, description='Mirror settings'
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description='Logging settings'
    )

    @classmethod
    def from_file(cls, config_path: str) -> 'Config':
        """Load configuration from YAML file."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f'Configuration file not found: {config_path}')

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError(f'Configuration file must contain a mapping: {config_path}')

        return cls(**config_data)

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        # Load .env file if it exists
        load_dotenv()

        timeout = os.getenv('MIRROR_TIMEOUT')

        config_data = {
            'github': {
                'url': os.getenv('GITHUB_API_URL'),
                'username': os.getenv('GITHUB_USERNAME'),
                'token': os.getenv('GITHUB_TOKEN'),
                'timeout': float(timeout) if timeout else None,
            },
            'gitea': {
                'url': os.getenv('GITEA_URL'),
                'token': os.getenv('GITEA_TOKEN'),
                'timeout': float(timeout) if timeout else None,
            },
            'logging': {
                'level': os.getenv('LOG_LEVEL', 'INFO'),
                'file': os.getenv('LOG_FILE'),
            },
        }

        # Remove None values
        config_data = cls._remove_none_values(config_data)

        return cls(**config_data)

    @staticmethod
    def _remove_none_values(data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively remove None values from dictionary."""
        if isinstance(data, dict):
            return {
                k: Config._remove_none_values(v)
                for k, v in data.items()
                if v is not None
            }
        return data

    def to_file(self, config_path: str) -> None:
        """Save configuration to YAML file."""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                self.model_dump(mode='json'),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )


TEMPLATE: Dict[str, Any] = {
    'github': {
        'url': 'https://api.github.com',
        'username': 'your-github-username',
        'token': 'your-github-personal-access-token',
        'timeout': 30,
    },
    'gitea': {
        'url': 'https://gitea.example.com',
        'token': 'your-gitea-access-token',
    },
    'retry': {
        'initial_delay': 7,
        'max_delay': 60,
        'max_attempts': 3,
    },
    'mirror': {
        'visibility': 'public',
        'dry_run': False,
        'options': {
            'issues': False,
            'pull_requests': False,
            'releases': False,
            'lfs': False,
            'labels': False,
            'milestones': False,
        },
    },
    'logging': {
        'level': 'INFO',
        'file': 'gitea-mirror.log',
    },
}


def create_template(output_path: str) -> None:
    """Create a configuration template file."""
    config_file = Path(output_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)

    with open(config_file, 'w', encoding='utf-8') as f:
        yaml.dump(TEMPLATE, f, default_flow_style=False, indent=2, sort_keys=False)
