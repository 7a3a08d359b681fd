"""Exponential backoff and status code classification for API calls."""

import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import requests
from loguru import logger
from pydantic import BaseModel, Field, field_validator, model_validator

from .exceptions import (
    AuthenticationError,
    NotFoundError,
    RetriesExhaustedError,
    TransientUpstreamError,
    UnclassifiedHTTPError,
)

SUCCESS_CODES = frozenset({200, 201, 204})
ALREADY_EXISTS_CODES = frozenset({409, 422})
RATE_LIMIT_CODE = 429
TRANSIENT_CODES = frozenset({RATE_LIMIT_CODE, 502, 503, 504})
NOT_FOUND_CODE = 404


class RetryOutcome(str, Enum):
    """Classification of a single HTTP attempt."""

    SUCCESS = 'success'
    ALREADY_EXISTS = 'already_exists'
    RETRYABLE = 'retryable'
    NOT_FOUND = 'not_found'
    FATAL = 'fatal'


def classify_status(status_code: int) -> RetryOutcome:
    """Map an HTTP status code to the action the retrier takes.

    Args:
        status_code: HTTP status code of one attempt

    Returns:
        Retry outcome for the status code
    """
    if status_code in SUCCESS_CODES:
        return RetryOutcome.SUCCESS
    if status_code in ALREADY_EXISTS_CODES:
        return RetryOutcome.ALREADY_EXISTS
    if status_code in TRANSIENT_CODES:
        return RetryOutcome.RETRYABLE
    if status_code == NOT_FOUND_CODE:
        return RetryOutcome.NOT_FOUND
    return RetryOutcome.FATAL


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    outcome: RetryOutcome
    attempts: int = 1

    @property
    def success(self) -> bool:
        """True for both fresh success and already-exists responses."""
        return self.outcome in (RetryOutcome.SUCCESS, RetryOutcome.ALREADY_EXISTS)

    @property
    def already_exists(self) -> bool:
        return self.outcome == RetryOutcome.ALREADY_EXISTS


class RetryPolicy(BaseModel):
    """Backoff settings, in seconds."""

    initial_delay: float = Field(default=7, description='Delay before the second attempt')
    max_delay: float = Field(default=60, description='Upper bound for any delay')
    max_attempts: int = Field(default=3, description='Attempts before giving up')

    @field_validator('initial_delay', 'max_delay')
    @classmethod
    def validate_delay(cls, v):
        """Validate delays are positive."""
        if v <= 0:
            raise ValueError('Retry delays must be positive')
        return v

    @field_validator('max_attempts')
    @classmethod
    def validate_max_attempts(cls, v):
        """Validate at least one attempt is made."""
        if v < 1:
            raise ValueError('max_attempts must be at least 1')
        return v

    @model_validator(mode='after')
    def validate_delay_order(self):
        """Ensure the initial delay does not exceed the cap."""
        if self.initial_delay > self.max_delay:
            raise ValueError('initial_delay must not exceed max_delay')
        return self


def _parse_body(response: requests.Response) -> Any:
    try:
        return response.json() if response.content else None
    except ValueError:
        return response.text


def _is_read_timeout(error: Optional[BaseException]) -> bool:
    # ConnectTimeout means the request never reached the server.
    return isinstance(error, requests.Timeout) and not isinstance(
        error, requests.ConnectTimeout
    )


class BackoffRetrier:
    """Runs one HTTP call with exponential backoff on transient failures."""

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize retrier.

        Args:
            policy: Backoff settings (defaults to 7s initial, 60s cap, 3 attempts)
            sleep: Blocking sleep function, replaceable in tests
        """
        self.policy = policy or RetryPolicy()
        self.sleep = sleep
        self.logger = logger.bind(component='BackoffRetrier')

    def _send_once(
        self, send: Callable[[], requests.Response], description: str
    ) -> requests.Response:
        """Issue one attempt; retryable failures raise ``TransientUpstreamError``."""
        try:
            response = send()
        except (requests.ConnectionError, requests.Timeout) as e:
            self.logger.warning(f'Network error during {description}: {e}')
            raise TransientUpstreamError(
                f'Network error during {description}: {e}'
            ) from e

        if classify_status(response.status_code) == RetryOutcome.RETRYABLE:
            if response.status_code == RATE_LIMIT_CODE:
                self.logger.warning(f'Rate limited during {description}')
            else:
                self.logger.warning(
                    f'Upstream returned {response.status_code} for {description}'
                )
            raise TransientUpstreamError(
                f'{description} returned HTTP {response.status_code}',
                status_code=response.status_code,
                response_data=_parse_body(response),
            )

        return response

    def execute(
        self,
        send: Callable[[], requests.Response],
        description: str,
        resend_on_timeout: bool = True,
    ) -> APIResponse:
        """Execute ``send`` until it succeeds, fails fatally or retries run out.

        Args:
            send: Callable issuing exactly one HTTP request
            description: Human readable request description for logs
            resend_on_timeout: Retry after a read timeout. Must be False for
                requests the server may still be processing, since the
                request has already been delivered.

        Returns:
            API response for a success or already-exists status

        Raises:
            NotFoundError: On 404
            AuthenticationError: On 401 or 403
            UnclassifiedHTTPError: On any other non-retryable status
            TransientUpstreamError: On a read timeout when resending is disabled
            RetriesExhaustedError: When every attempt hit a retryable failure
        """
        attempt = 0
        delay = self.policy.initial_delay
        last_status: Optional[int] = None
        last_error: Optional[TransientUpstreamError] = None

        while attempt < self.policy.max_attempts:
            if attempt > 0:
                self.logger.warning(
                    f'Retrying {description} in {delay:g}s '
                    f'(attempt {attempt + 1}/{self.policy.max_attempts})'
                )
                self.sleep(delay)
                delay = min(delay * 2, self.policy.max_delay)

            attempt += 1

            try:
                response = self._send_once(send, description)
            except TransientUpstreamError as e:
                last_status = e.status_code
                last_error = e
                if not resend_on_timeout and _is_read_timeout(e.__cause__):
                    self.logger.error(f'{description} timed out; not resending it')
                    raise TransientUpstreamError(
                        f'{description} timed out after the request was sent; '
                        'the server may still be processing it'
                    ) from e.__cause__
                if e.status_code == RATE_LIMIT_CODE:
                    delay = self.policy.max_delay
                continue

            status_code = response.status_code
            last_status = status_code
            outcome = classify_status(status_code)
            self.logger.debug(f'{description} -> {status_code} ({outcome.value})')

            if outcome in (RetryOutcome.SUCCESS, RetryOutcome.ALREADY_EXISTS):
                return APIResponse(
                    status_code=status_code,
                    data=_parse_body(response),
                    headers=dict(response.headers),
                    outcome=outcome,
                    attempts=attempt,
                )
            elif outcome == RetryOutcome.NOT_FOUND:
                raise NotFoundError(
                    f'Resource not found: {description}',
                    status_code=status_code,
                    response_data=_parse_body(response),
                )
            elif outcome == RetryOutcome.FATAL:
                self.logger.error(
                    f'{description} failed with HTTP {status_code}: {response.text}'
                )
                error_class = (
                    AuthenticationError
                    if status_code in (401, 403)
                    else UnclassifiedHTTPError
                )
                raise error_class(
                    f'{description} failed with HTTP {status_code}',
                    status_code=status_code,
                    response_data=_parse_body(response),
                )
            else:
                raise AssertionError(f'Unhandled retry outcome: {outcome}')

        raise RetriesExhaustedError(
            f'{description} still failing after {attempt} attempts',
            attempts=attempt,
            status_code=last_status,
        ) from last_error
