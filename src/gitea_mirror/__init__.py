"""gitea-mirror

Mirror GitHub repositories (single repositories, whole organizations, a user's
own repositories or a user's stars) into a Gitea instance through the REST
APIs of both services.
"""

__version__ = '0.1.0'

from .cli.main import main

__all__ = ['main']
