"""Tests for configuration management."""

import pytest
import tempfile
import os
from unittest.mock import patch

import yaml

from gitea_mirror.config.config import (
    Config,
    GiteaConfig,
    GitHubConfig,
    MirrorSettings,
    create_template,
)


class TestGiteaConfig:
    """Test Gitea instance configuration."""

    def test_valid_config(self):
        """Test valid configuration creation."""
        config = GiteaConfig(url='https://gitea.example.com', token='test-token', timeout=10)

        assert config.url == 'https://gitea.example.com'
        assert config.token == 'test-token'
        assert config.timeout == 10

    def test_url_validation(self):
        """Test URL validation."""
        valid_urls = [
            'https://gitea.example.com',
            'http://localhost:3000',
        ]

        for url in valid_urls:
            config = GiteaConfig(url=url, token='test')
            assert config.url == url

        with pytest.raises(ValueError):
            GiteaConfig(url='gitea.example.com', token='test')

    def test_api_suffix_stripped(self):
        """Test a URL pointing at the API root is normalized."""
        config = GiteaConfig(url='https://gitea.example.com/api/v1/', token='test')

        assert config.url == 'https://gitea.example.com'

    def test_missing_token(self):
        """Test that missing token raises validation error."""
        with pytest.raises(ValueError):
            GiteaConfig(url='https://gitea.example.com')

        with pytest.raises(ValueError):
            GiteaConfig(url='https://gitea.example.com', token='  ')

    def test_timeout_must_be_positive(self):
        """Test timeout validation."""
        with pytest.raises(ValueError):
            GiteaConfig(url='https://gitea.example.com', token='t', timeout=0)

    def test_timeout_unset_by_default(self):
        """Test Gitea calls wait for slow migrations unless a timeout is set."""
        config = GiteaConfig(url='https://gitea.example.com', token='t')

        assert config.timeout is None


class TestGitHubConfig:
    """Test GitHub configuration."""

    def test_defaults(self):
        """Test anonymous public API defaults."""
        config = GitHubConfig()

        assert config.url == 'https://api.github.com'
        assert config.token is None
        assert config.per_page == 100

    def test_per_page_bounds(self):
        """Test GitHub's page size cap is enforced."""
        with pytest.raises(ValueError):
            GitHubConfig(per_page=101)


class TestMirrorSettings:
    """Test mirror settings."""

    def test_visibility(self):
        """Test visibility validation and normalization."""
        assert MirrorSettings(visibility='PRIVATE').visibility == 'private'

        with pytest.raises(ValueError):
            MirrorSettings(visibility='secret')

    def test_lfs_endpoint_validation(self):
        """Test LFS endpoint must be a URL."""
        with pytest.raises(ValueError):
            MirrorSettings(options={'lfs': True, 'lfs_endpoint': 'lfs.example.com'})


class TestConfig:
    """Test main configuration class."""

    def test_config_creation(self):
        """Test configuration creation with defaults."""
        config = Config(
            gitea=GiteaConfig(url='https://gitea.example.com', token='gitea-token'),
        )

        assert config.github.url == 'https://api.github.com'
        assert config.retry.initial_delay == 7
        assert config.retry.max_delay == 60
        assert config.retry.max_attempts == 3
        assert config.mirror.visibility == 'public'
        assert config.mirror.options.issues is False
        assert config.logging.level == 'INFO'

    def test_config_from_dict(self):
        """Test configuration creation from dictionary."""
        config_dict = {
            'github': {'username': 'octocat', 'token': 'gh-token'},
            'gitea': {'url': 'https://gitea.example.com', 'token': 'gitea-token'},
            'mirror': {'options': {'issues': True}, 'visibility': 'limited'},
            'retry': {'max_attempts': 5},
        }

        config = Config(**config_dict)
        assert config.github.username == 'octocat'
        assert config.mirror.options.issues is True
        assert config.mirror.visibility == 'limited'
        assert config.retry.max_attempts == 5

    def test_unknown_section_rejected(self):
        """Test extra top-level keys are rejected."""
        with pytest.raises(ValueError):
            Config(
                gitea={'url': 'https://gitea.example.com', 'token': 't'},
                gitlab={'url': 'https://gitlab.example.com'},
            )

    def test_config_from_file(self):
        """Test configuration loading from YAML file."""
        config_content = """
github:
  username: octocat
  token: gh-token

gitea:
  url: https://gitea.example.com
  token: gitea-token

mirror:
  visibility: private
  options:
    releases: true
"""

        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write(config_content)
            f.flush()

        try:
            config = Config.from_file(f.name)
            assert config.github.token == 'gh-token'
            assert config.gitea.url == 'https://gitea.example.com'
            assert config.mirror.visibility == 'private'
            assert config.mirror.options.releases is True
        finally:
            os.unlink(f.name)

    def test_config_from_env(self):
        """Test configuration loading from environment variables."""
        env_vars = {
            'GITEA_URL': 'https://gitea.example.com',
            'GITEA_TOKEN': 'gitea-token',
            'GITHUB_TOKEN': 'gh-token',
            'GITHUB_USERNAME': 'octocat',
            'MIRROR_TIMEOUT': '45',
            'LOG_LEVEL': 'debug',
        }

        with patch.dict(os.environ, env_vars, clear=True), patch(
            'gitea_mirror.config.config.load_dotenv'
        ):
            config = Config.from_env()

        assert config.gitea.url == 'https://gitea.example.com'
        assert config.gitea.token == 'gitea-token'
        assert config.github.token == 'gh-token'
        assert config.github.username == 'octocat'
        assert config.github.timeout == 45
        assert config.gitea.timeout == 45
        assert config.logging.level == 'DEBUG'

    def test_config_from_env_missing_gitea(self):
        """Test the destination is required."""
        with patch.dict(os.environ, {}, clear=True), patch(
            'gitea_mirror.config.config.load_dotenv'
        ):
            with pytest.raises(ValueError):
                Config.from_env()

    def test_invalid_config_file(self):
        """Test handling of invalid configuration file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write('invalid: yaml: content:')
            f.flush()

        try:
            with pytest.raises(yaml.YAMLError):
                Config.from_file(f.name)
        finally:
            os.unlink(f.name)

    def test_missing_config_file(self):
        """Test handling of missing configuration file."""
        with pytest.raises(FileNotFoundError):
            Config.from_file('/nonexistent/config.yaml')

    def test_round_trip_to_file(self, tmp_path):
        """Test a saved configuration loads back unchanged."""
        config = Config(
            gitea=GiteaConfig(url='https://gitea.example.com', token='gitea-token'),
            mirror=MirrorSettings(options={'labels': True}),
        )
        path = tmp_path / 'saved.yaml'

        config.to_file(str(path))

        assert Config.from_file(str(path)) == config

    def test_template_is_loadable(self, tmp_path):
        """Test the generated template is a valid configuration."""
        path = tmp_path / 'config.yaml'

        create_template(str(path))

        config = Config.from_file(str(path))
        assert config.gitea.url == 'https://gitea.example.com'
        assert config.retry.max_attempts == 3
