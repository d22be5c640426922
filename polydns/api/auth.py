"""
Authentication strategies for DNS provider APIs
Each strategy is a requests auth hook applied to every prepared request
"""

import hashlib
import hmac
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Union
from urllib.parse import parse_qsl, quote, unquote, urlsplit

import requests
from requests.auth import AuthBase

from polydns.api.exceptions import APIError, AuthError, NetworkError
from polydns.utils.logger import get_logger


logger = get_logger(__name__)


class StaticHeaderAuth(AuthBase):
    """Sends a raw API key in a provider-defined header (e.g. Bunny's AccessKey)."""
    
    def __init__(self, header: str, key: str):
        self.header = header
        self.key = key
    
    def __call__(self, r):
        r.headers[self.header] = self.key
        return r


class BearerTokenAuth(AuthBase):
    """Sends ``Authorization: Bearer <token>``."""
    
    def __init__(self, token: str):
        self.token = token
    
    def __call__(self, r):
        r.headers["Authorization"] = f"Bearer {self.token}"
        return r


class OAuth2ClientCredentialsAuth(AuthBase):
    """
    Azure AD client-credentials grant with a cached access token.
    
    The cached token is reused while ``now < expires_at - REFRESH_MARGIN``.
    Refresh is single-flight: concurrent callers sharing one instance wait
    on a lock and the token endpoint is hit once.
    """
    
    TOKEN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/token"
    REFRESH_MARGIN = 120
    DEFAULT_RESOURCE = "https://management.azure.com/"
    DEFAULT_SCOPE = "https://management.azure.com/.default"
    
    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        resource: str = DEFAULT_RESOURCE,
        scope: str = DEFAULT_SCOPE,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
        timeout: float = 30
    ):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.resource = resource
        self.scope = scope
        self.session = session or requests.Session()
        self.timeout = timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._access_token: Optional[str] = None
        self._expires_at = 0.0
    
    @property
    def token_url(self) -> str:
        return self.TOKEN_URL.format(tenant=self.tenant_id)
    
    @property
    def expires_at(self) -> float:
        return self._expires_at
    
    def _is_fresh(self) -> bool:
        return (
            self._access_token is not None
            and self._clock() < self._expires_at - self.REFRESH_MARGIN
        )
    
    def get_token(self) -> str:
        """
        Return a valid access token, fetching a new one when needed.
        
        Raises:
            AuthError: If the token endpoint rejects the credentials
            APIError: If the token endpoint fails otherwise
            NetworkError: On transport failures
        """
        if self._is_fresh():
            return self._access_token
        
        with self._lock:
            # Another caller may have refreshed while we waited
            if not self._is_fresh():
                self._fetch_token()
            return self._access_token
    
    def _fetch_token(self):
        logger.debug(f"Requesting Azure access token for tenant {self.tenant_id}")
        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "resource": self.resource,
            "scope": self.scope,
        }
        try:
            response = self.session.post(self.token_url, data=data, timeout=self.timeout)
        except requests.exceptions.Timeout:
            raise NetworkError(f"Token request timed out after {self.timeout} seconds")
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Token request failed: {str(e)}")
        
        if response.status_code in (400, 401, 403):
            raise AuthError(
                "Azure token request rejected. Check tenant, client id and secret.",
                status_code=response.status_code,
                response_body=response.text
            )
        if response.status_code >= 400:
            raise APIError(
                "Azure token request failed",
                status_code=response.status_code,
                response_body=response.text
            )
        
        try:
            payload = response.json()
        except ValueError:
            raise APIError("Unparseable token response", response_body=response.text)
        
        token = payload.get("access_token")
        if not token:
            raise AuthError("Token response did not contain an access_token", response_body=response.text)
        
        expires_in = int(payload.get("expires_in") or 3600)
        self._access_token = token
        self._expires_at = self._clock() + expires_in
        logger.info(f"✅ Azure access token acquired (expires in {expires_in}s)")
    
    def __call__(self, r):
        r.headers["Authorization"] = f"Bearer {self.get_token()}"
        return r


# ---------------------------------------------------------------------------
# AWS Signature Version 4
# ---------------------------------------------------------------------------

SIGV4_ALGORITHM = "AWS4-HMAC-SHA256"
SIGNED_HEADERS = "host;x-amz-content-sha256;x-amz-date"


def hash_payload(body: Union[bytes, str, None]) -> str:
    """SHA-256 hex digest of the request body (empty body if None)."""
    if body is None:
        body = b""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return hashlib.sha256(body).hexdigest()


def _uri_encode(value: str, safe: str = "-_.~") -> str:
    return quote(value, safe=safe)


def canonical_query(query: str) -> str:
    """Sort query parameters and URI-encode names and values."""
    pairs = parse_qsl(query, keep_blank_values=True)
    encoded = sorted((_uri_encode(k), _uri_encode(v)) for k, v in pairs)
    return "&".join(f"{k}={v}" for k, v in encoded)


def build_canonical_request(
    method: str,
    path: str,
    query: str,
    host: str,
    payload_hash: str,
    amz_date: str
) -> str:
    """
    Build the SigV4 canonical request.
    
    Canonical headers are always host, x-amz-content-sha256 and x-amz-date,
    in that order.
    """
    canonical_path = _uri_encode(unquote(path or "/"), safe="/-_.~")
    canonical_headers = (
        f"host:{host}\n"
        f"x-amz-content-sha256:{payload_hash}\n"
        f"x-amz-date:{amz_date}\n"
    )
    return "\n".join([
        method.upper(),
        canonical_path,
        canonical_query(query),
        canonical_headers,
        SIGNED_HEADERS,
        payload_hash,
    ])


def build_string_to_sign(amz_date: str, credential_scope: str, canonical_request: str) -> str:
    digest = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()
    return f"{SIGV4_ALGORITHM}\n{amz_date}\n{credential_scope}\n{digest}"


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str = "route53") -> bytes:
    """HMAC chain: "AWS4"+secret -> date -> region -> service -> "aws4_request"."""
    k_date = _hmac(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, "aws4_request")


def calculate_signature(
    secret_key: str,
    date_stamp: str,
    region: str,
    string_to_sign: str,
    service: str = "route53"
) -> str:
    """
    Sign a string-to-sign with the derived SigV4 key.
    
    Args:
        secret_key: AWS secret access key
        date_stamp: Date in YYYYMMDD form
        region: AWS region (Route 53 signs in us-east-1)
        string_to_sign: Output of build_string_to_sign
        service: AWS service name
        
    Returns:
        Lower-case hex signature
    """
    signing_key = derive_signing_key(secret_key, date_stamp, region, service)
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AwsSigV4Auth(AuthBase):
    """
    Signs every request with AWS Signature Version 4.
    
    The signature depends on time and payload, so it is recomputed for each
    prepared request.
    """
    
    def __init__(
        self,
        access_key: str,
        secret_key: str,
        region: str = "us-east-1",
        service: str = "route53",
        clock: Callable[[], datetime] = _utcnow
    ):
        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.service = service
        self._clock = clock
    
    def credential_scope(self, date_stamp: str) -> str:
        return f"{date_stamp}/{self.region}/{self.service}/aws4_request"
    
    def __call__(self, r):
        now = self._clock()
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = now.strftime("%Y%m%d")
        
        payload_hash = hash_payload(r.body)
        url = urlsplit(r.url)
        
        canonical_request = build_canonical_request(
            r.method, url.path, url.query, url.netloc, payload_hash, amz_date
        )
        scope = self.credential_scope(date_stamp)
        string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)
        signature = calculate_signature(
            self.secret_key, date_stamp, self.region, string_to_sign, self.service
        )
        
        r.headers["x-amz-date"] = amz_date
        r.headers["x-amz-content-sha256"] = payload_hash
        r.headers["Authorization"] = (
            f"{SIGV4_ALGORITHM} Credential={self.access_key}/{scope}, "
            f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
        )
        return r
