"""
HTTP client for the remote registration endpoint
"""

import logging
from typing import Any, Dict, Optional

import requests

from ..exceptions import NetworkError, RegistrationFailureError, UnexpectedResponseCodeError
from ..models.registration import RegistrationPayload

# Response codes the endpoint uses for an accepted registration
ACCEPTED_CODES = (200, 0)


def _server_message(data: Any) -> Optional[str]:
    if isinstance(data, dict):
        for key in ("msg", "message", "error"):
            if data.get(key):
                return str(data[key])
    return None


class RegistrationClient:
    """Posts registration payloads as JSON and classifies the outcome"""

    def __init__(self, endpoint: str, timeout: float = 15,
                 enforce_response_code: bool = False,
                 session: Optional[requests.Session] = None):
        self.endpoint = endpoint
        self.timeout = timeout
        self.enforce_response_code = enforce_response_code
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json", "Accept": "application/json"})
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def register(self, payload: RegistrationPayload) -> Dict[str, Any]:
        """
        Submit one registration request

        Returns:
            The decoded JSON body

        Raises:
            NetworkError: transport failure or non-2xx status
            RegistrationFailureError: body is not JSON, or the response code
                check is enforced and fails
        """
        try:
            response = self.session.post(self.endpoint, json=payload.to_json(), timeout=self.timeout)
        except requests.RequestException as e:
            raise NetworkError(f"Request failed: {e}", url=self.endpoint) from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.ok:
            message = _server_message(data) or response.reason or "request rejected"
            raise NetworkError(f"HTTP {response.status_code}: {message}",
                               url=self.endpoint, status_code=response.status_code)

        if data is None:
            raise RegistrationFailureError("response body is not JSON", "invalid_response",
                                           {"status_code": response.status_code})

        code = data.get("code") if isinstance(data, dict) else None
        if isinstance(code, str) and code.strip().lstrip("-").isdigit():
            code = int(code)
        if code is not None and code not in ACCEPTED_CODES:
            if self.enforce_response_code:
                raise UnexpectedResponseCodeError(code, _server_message(data))
            self.logger.warning(f"Endpoint returned code {code} for {payload.account}, treating as success")

        return data

    def close(self):
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
