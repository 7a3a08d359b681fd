"""Tests for the migration submitter."""

import pytest
from unittest.mock import Mock, patch
import requests

from gitea_mirror.api.client import GiteaClient
from gitea_mirror.api.exceptions import TransientUpstreamError, UnclassifiedHTTPError
from gitea_mirror.api.retry import BackoffRetrier
from gitea_mirror.config.config import GiteaConfig
from gitea_mirror.migration.submitter import MigrationSubmitter
from gitea_mirror.models.repository import MigrationRequest

from conftest import make_response

MIGRATE_URL = 'https://gitea.example.com/api/v1/repos/migrate'


class TestMigrationSubmitter:
    """Test mirror and organization creation."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = GiteaClient(
            GiteaConfig(url='https://gitea.example.com', token='gitea-token'),
            BackoffRetrier(sleep=Mock()),
        )
        self.request = MigrationRequest(
            clone_addr='https://github.com/acme/widget.git',
            repo_name='widget',
            uid=42,
        )

    @patch('requests.Session.request')
    def test_submit_created(self, mock_request):
        """Test a new mirror is created."""
        mock_request.return_value = make_response(201, {'id': 7, 'name': 'widget'})

        result = MigrationSubmitter(self.client).submit(self.request)

        assert result.created is True
        assert result.name == 'widget'
        mock_request.assert_called_once()
        args, kwargs = mock_request.call_args
        assert args == ('POST', MIGRATE_URL)
        assert kwargs['json'] == self.request.to_payload()

    @pytest.mark.parametrize('status_code', [409, 422])
    @patch('requests.Session.request')
    def test_submit_already_exists(self, mock_request, status_code):
        """Test an existing mirror is a silent success."""
        mock_request.return_value = make_response(
            status_code, {'message': 'The repository with the same name already exists.'}
        )

        result = MigrationSubmitter(self.client).submit(self.request)

        assert result.created is False
        assert result.dry_run is False
        mock_request.assert_called_once()

    @patch('requests.Session.request')
    def test_submit_unexpected_status(self, mock_request):
        """Test unexpected statuses propagate."""
        mock_request.return_value = make_response(500, {'message': 'internal'})

        with pytest.raises(UnclassifiedHTTPError):
            MigrationSubmitter(self.client).submit(self.request)

    @patch('requests.Session.request')
    def test_submit_timeout_is_not_resent(self, mock_request):
        """Test a migrate call that timed out is not sent a second time."""
        mock_request.side_effect = [
            requests.Timeout('read timed out'),
            make_response(409, {'message': 'already exists'}),
        ]

        with pytest.raises(TransientUpstreamError):
            MigrationSubmitter(self.client).submit(self.request)

        assert mock_request.call_count == 1
        assert mock_request.call_args.kwargs['timeout'] is None

    @patch('requests.Session.request')
    def test_submit_dry_run(self, mock_request):
        """Test dry runs send nothing."""
        result = MigrationSubmitter(self.client, dry_run=True).submit(self.request)

        assert result.dry_run is True
        assert result.created is False
        mock_request.assert_not_called()

    @patch('requests.Session.request')
    def test_create_organization(self, mock_request):
        """Test organization creation body."""
        mock_request.return_value = make_response(201, {'id': 42, 'username': 'acme'})

        result = MigrationSubmitter(self.client).create_organization('acme', 'private')

        assert result.created is True
        args, kwargs = mock_request.call_args
        assert args == ('POST', 'https://gitea.example.com/api/v1/orgs')
        assert kwargs['json'] == {'username': 'acme', 'visibility': 'private'}

    @patch('requests.Session.request')
    def test_create_existing_organization(self, mock_request):
        """Test an existing organization is not an error."""
        mock_request.return_value = make_response(422, {'message': 'user already exists'})

        result = MigrationSubmitter(self.client).create_organization('acme')

        assert result.created is False
