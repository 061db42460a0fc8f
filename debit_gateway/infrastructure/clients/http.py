"""Shared response handling for downstream HTTP clients"""

import httpx

from debit_gateway.domain.exceptions import UpstreamServiceError


def raise_for_upstream_status(response: httpx.Response, service: str) -> None:
    """
    Translate unexpected HTTP statuses into UpstreamServiceError.

    5xx responses are retryable; other non-2xx statuses are not.
    Callers handle statuses that carry domain meaning (e.g. 404) first.
    """
    if response.is_success:
        return
    raise UpstreamServiceError(
        f"{service} error: {response.status_code}",
        retryable=response.is_server_error,
    )
