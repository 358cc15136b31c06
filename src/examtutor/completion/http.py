"""
Shared HTTP call for the hosted completion backends.
"""

from typing import Any

import requests

from examtutor.exceptions import CompletionError

__all__ = ["post_json"]

_TRANSIENT_STATUS = {408, 429, 500, 502, 503, 504}


def post_json(
    provider: str,
    url: str,
    payload: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
) -> dict[str, Any]:
    """
    POST a JSON payload and return the decoded JSON body.

    Args:
        provider (str): Provider key, attached to any raised error.
        url (str): Endpoint URL.
        payload (dict): JSON request body.
        headers (dict): Request headers (auth included).
        timeout (float): Timeout in seconds for connect and read.

    Returns:
        dict: Decoded response body.

    Raises:
        CompletionError: On network errors, non-2xx responses or undecodable bodies.
            Timeouts, connection errors, 408/429 and 5xx are marked transient.
    """
    try:
        response = requests.post(url, json=payload, headers=headers, timeout=timeout)
    except (requests.Timeout, requests.ConnectionError) as exc:
        raise CompletionError(provider, str(exc), transient=True) from exc
    except requests.RequestException as exc:
        raise CompletionError(provider, str(exc)) from exc

    if not response.ok:
        raise CompletionError(
            provider,
            response.text[:1000] or response.reason or "request failed",
            status=response.status_code,
            transient=response.status_code in _TRANSIENT_STATUS,
        )

    try:
        return response.json()
    except ValueError as exc:
        raise CompletionError(
            provider, "response body is not valid JSON", status=response.status_code
        ) from exc
