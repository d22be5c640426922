"""
HTTP request executor shared by all provider clients
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from requests.auth import AuthBase
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type
)

from polydns.api.exceptions import (
    APIError,
    AuthError,
    DNSError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ServerError
)
from polydns.utils.logger import get_logger


logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass
class RateLimitInfo:
    """Last rate-limit headers seen from a provider (observed, never acted on)."""
    
    remaining: Optional[int] = None
    reset_at: Optional[datetime] = None


def classify_error(status_code: int, message: str, response_body: str = "") -> DNSError:
    """
    Map an HTTP failure status onto the error taxonomy.
    
    Args:
        status_code: HTTP status (>= 400)
        message: Human readable message
        response_body: Raw response text kept for diagnostics
        
    Returns:
        Exception instance ready to raise
    """
    if status_code in (401, 403):
        error_class = AuthError
    elif status_code == 404:
        error_class = NotFoundError
    elif status_code == 429:
        error_class = RateLimitError
    elif 500 <= status_code < 600:
        error_class = ServerError
    else:
        error_class = APIError
    return error_class(message, status_code=status_code, response_body=response_body)


def extract_error_message(text: str) -> str:
    """
    Pull a readable message out of a provider error body.
    
    Understands the common envelopes: {"error": ...}, {"message": ...},
    {"errors": [{"message": ...}]} and {"error": {"message": ...}}.
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return (text or "").strip()[:500]
    
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if data.get("message"):
            return str(data["message"])
        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict) and first.get("message"):
                return str(first["message"])
            return str(first)
    return (text or "").strip()[:500]


class RequestExecutor:
    """
    Builds, authenticates and sends one HTTP exchange.
    
    Every call applies the auth strategy, records rate-limit headers,
    classifies HTTP failures and returns the parsed JSON body
    (None for 204 or empty responses).
    """
    
    def __init__(
        self,
        base_url: str,
        auth: Optional[AuthBase] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        retry_attempts: int = 1,
        default_headers: Optional[Dict[str, str]] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.session = session or requests.Session()
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.headers = {
            "Accept": "application/json",
            **(default_headers or {})
        }
        self.rate_limit = RateLimitInfo()
    
    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.base_url}{path}"
    
    def execute(
        self,
        method: str,
        path: str,
        body: Any = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Send a request and return the parsed JSON response.
        
        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE)
            path: Path relative to the base URL, or an absolute URL
            body: JSON-serialisable request body
            params: Query parameters
            
        Returns:
            Parsed JSON value, or None when the response has no body
            
        Raises:
            AuthError, NotFoundError, APIError: On HTTP failures
            NetworkError: On timeouts and connection failures
        """
        if self.retry_attempts <= 1:
            return self._send(method, path, body, params)
        
        send = retry(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(NetworkError),
            reraise=True
        )(self._send)
        return send(method, path, body, params)
    
    def _send(self, method: str, path: str, body: Any, params: Optional[Dict[str, Any]]) -> Any:
        url = self.url_for(path)
        method = method.upper()
        
        request = requests.Request(
            method=method,
            url=url,
            headers=dict(self.headers),
            params={k: v for k, v in (params or {}).items() if v is not None},
            json=body,
            auth=self.auth
        )
        prepared = request.prepare()
        
        logger.debug(f"{method} {prepared.url}")
        
        try:
            response = self.session.send(prepared, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise NetworkError(f"Request timed out after {self.timeout} seconds")
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Connection error: {str(e)}")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error: {str(e)}")
        
        logger.debug(f"{method} {prepared.url} -> HTTP {response.status_code}")
        self._record_rate_limit(response)
        
        if response.status_code >= 400:
            text = response.text or ""
            reason = extract_error_message(text) or response.reason or "Request failed"
            raise classify_error(
                response.status_code,
                f"{method} {path}: {reason}",
                response_body=text
            )
        
        if response.status_code == 204 or not (response.content or b"").strip():
            return None
        
        try:
            return response.json()
        except ValueError:
            raise APIError(
                f"Unparseable response body from {method} {path}",
                status_code=response.status_code,
                response_body=response.text
            )
    
    def _record_rate_limit(self, response: requests.Response):
        headers = {k.lower(): v for k, v in (response.headers or {}).items()}
        remaining = headers.get("x-ratelimit-remaining")
        reset = headers.get("x-ratelimit-reset")
        
        if remaining is None and reset is None:
            return
        
        info = RateLimitInfo()
        try:
            info.remaining = int(remaining) if remaining is not None else None
        except ValueError:
            logger.debug(f"Ignoring malformed X-RateLimit-Remaining: {remaining!r}")
        try:
            if reset is not None:
                info.reset_at = datetime.fromtimestamp(int(float(reset)), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            logger.debug(f"Ignoring malformed X-RateLimit-Reset: {reset!r}")
        
        self.rate_limit = info
        if info.remaining is not None and info.remaining <= 5:
            logger.warning(f"Rate limit nearly exhausted: {info.remaining} requests remaining")
