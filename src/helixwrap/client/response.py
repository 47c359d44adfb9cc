"""Response body extraction for resource calls.

:func:`extract_response_data` turns an :class:`httpx.Response` into the
decoded JSON payload. A response with an error status, or a 2xx response
that has no body or a body that is not JSON, raises
:class:`~helixwrap.exceptions.RequestFailed`.
"""

from __future__ import annotations

from typing import Any

import httpx

from helixwrap.exceptions import RequestFailed


def extract_response_data(response: httpx.Response) -> Any:
    """Decode the JSON body of a successful resource response.

    Args:
        response: The :class:`httpx.Response` to decode.

    Returns:
        The JSON-decoded body (usually a ``dict``).

    Raises:
        RequestFailed: On a non-2xx status (``status_code`` set), or on a
            2xx response with an empty or unparseable body.
    """
    status = response.status_code
    if not 200 <= status < 300:
        detail = response.text[:200] if response.text else ""
        message = f"HTTP {status}: {detail}" if detail else f"HTTP {status}"
        raise RequestFailed(message, status_code=status)

    if not response.content:
        raise RequestFailed(f"HTTP {status}: no data received")

    try:
        return response.json()
    except ValueError as exc:
        raise RequestFailed(f"HTTP {status}: unparseable body: {exc}") from exc
