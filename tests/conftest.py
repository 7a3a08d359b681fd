"""Shared fixtures for gitea-mirror tests."""

import json
import sys
from unittest.mock import Mock, NonCallableMock

import pytest
from loguru import logger

from gitea_mirror.config.config import Config, GiteaConfig, GitHubConfig


def make_response(status_code=200, data=None, headers=None):
    """Build a mock ``requests.Response``."""
    body = json.dumps(data) if data is not None else ''
    response = NonCallableMock()
    response.status_code = status_code
    response.headers = headers or {'Content-Type': 'application/json'}
    response.content = body.encode()
    response.text = body
    response.json = Mock(return_value=data)
    return response


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def config():
    return Config(
        github=GitHubConfig(username='octocat', token='gh-token'),
        gitea=GiteaConfig(url='https://gitea.example.com', token='gitea-token'),
    )


@pytest.fixture(autouse=True)
def reset_logger():
    """CLI tests point loguru at streams that are closed afterwards."""
    yield
    logger.remove()
    logger.add(lambda message: sys.stderr.write(message), level='DEBUG')
