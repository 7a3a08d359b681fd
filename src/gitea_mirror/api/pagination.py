"""Page-by-page fetching of GitHub list endpoints."""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from .client import APIClient
from .exceptions import MirrorAPIError, NotFoundError

DEFAULT_PER_PAGE = 100


class FetchStrategy(str, Enum):
    """How an empty or missing listing is treated."""

    # Failures, including 404, propagate.
    STRICT = 'strict'
    # Empty first page (or 404 on it) means "nothing to list".
    TOLERANT_EMPTY = 'tolerant_empty'


class FetchResult(BaseModel):
    """Records accumulated across all pages of one listing."""

    items: List[Dict[str, Any]] = Field(default_factory=list)
    pages: int = Field(default=0, description='Page requests made')
    empty: bool = Field(default=False, description='Listing had nothing in it')


class PaginatedFetcher:
    """Fetches every page of an offset-paginated list endpoint."""

    def __init__(
        self,
        client: APIClient,
        per_page: int = DEFAULT_PER_PAGE,
        scratch_dir: Optional[Path] = None,
    ):
        """Initialize fetcher.

        Args:
            client: Client used for page requests
            per_page: Page size requested from the API
            scratch_dir: Directory receiving each raw page as JSON
        """
        self.client = client
        self.per_page = per_page
        self.scratch_dir = scratch_dir
        self.logger = logger.bind(component='PaginatedFetcher')

    def fetch_all(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        strategy: FetchStrategy = FetchStrategy.STRICT,
        label: str = 'items',
    ) -> FetchResult:
        """Fetch all pages of ``endpoint``.

        Stops at the first page holding fewer than ``per_page`` records.

        Args:
            endpoint: List endpoint
            params: Extra query parameters
            strategy: Handling of empty or missing listings
            label: Name used in logs and scratch file names

        Returns:
            Accumulated records

        Raises:
            MirrorAPIError: If a page cannot be fetched
        """
        accumulated: List[Dict[str, Any]] = []
        page = 1

        while True:
            query = dict(params or {})
            query.update({'page': page, 'per_page': self.per_page})

            try:
                response = self.client.get(endpoint, params=query)
            except NotFoundError:
                if strategy == FetchStrategy.TOLERANT_EMPTY and page == 1:
                    self.logger.warning(f'No {label} found at {endpoint} (not found)')
                    return FetchResult(items=[], pages=page, empty=True)
                raise

            items = response.data if response.data is not None else []
            if not isinstance(items, list):
                raise MirrorAPIError(
                    f'Expected a JSON array from {endpoint}, '
                    f'got {type(items).__name__}',
                    status_code=response.status_code,
                    response_data=response.data,
                )

            self._write_page(label, page, items)
            accumulated.extend(items)
            self.logger.info(
                f'Fetched page {page} of {label}: {len(items)} records, '
                f'{len(accumulated)} total'
            )

            if len(items) < self.per_page:
                break

            page += 1

        if not accumulated:
            if strategy == FetchStrategy.TOLERANT_EMPTY:
                self.logger.warning(f'No {label} found at {endpoint}')
            return FetchResult(items=[], pages=page, empty=True)

        return FetchResult(items=accumulated, pages=page, empty=False)

    def fetch_one(self, endpoint: str) -> Dict[str, Any]:
        """Fetch a single object; a missing resource is an error.

        Args:
            endpoint: Object endpoint

        Returns:
            Decoded JSON object

        Raises:
            NotFoundError: If the object does not exist
            MirrorAPIError: If the body is not a JSON object
        """
        response = self.client.get(endpoint)
        if not isinstance(response.data, dict):
            raise MirrorAPIError(
                f'Expected a JSON object from {endpoint}',
                status_code=response.status_code,
                response_data=response.data,
            )
        return response.data

    def _write_page(self, label: str, page: int, items: List[Dict[str, Any]]) -> None:
        if self.scratch_dir is None:
            return

        page_file = self.scratch_dir / f'{label}-page-{page}.json'
        with open(page_file, 'w', encoding='utf-8') as f:
            json.dump(items, f)
