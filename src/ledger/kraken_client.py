"""
Kraken ledger client: implements LedgerClient over the private REST API.

Requests are form-encoded POSTs signed with HMAC-SHA512 of the URL path
and SHA256(nonce + body), keyed by the base64-decoded API secret.
"""

import base64
import hashlib
import hmac
import logging
import time
import urllib.parse

import requests

from ledger.client import LedgerPage, LedgerQuery, RemoteError, Resource
from ledger.records import parse_page

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.kraken.com"


def sign_request(url_path: str, body: str, nonce: str, secret: str | bytes) -> str:
    """Return the API-Sign header value for a private endpoint call.

    *secret* is the base64 API secret as issued, or its already decoded bytes.
    """
    key = secret if isinstance(secret, bytes) else base64.b64decode(secret)
    digest = hashlib.sha256((nonce + body).encode("utf-8")).digest()
    mac = hmac.new(key, url_path.encode("utf-8") + digest, hashlib.sha512)
    return base64.b64encode(mac.digest()).decode("ascii")


class KrakenLedgerClient:
    """
    Query trade history and closed orders from Kraken.

    API keys via constructor (typically from AppConfig, sourced from env vars).
    One client per run; not safe for concurrent use.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_s: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_key or not api_secret:
            raise ValueError(
                "Kraken API key and secret are required. "
                "Set KRAKEN_API_KEY and KRAKEN_SECRET_KEY environment variables."
            )
        self._api_key = api_key
        try:
            self._secret_key = base64.b64decode(api_secret, validate=True)
        except ValueError as exc:
            raise ValueError("Kraken API secret is not valid base64. Check KRAKEN_SECRET_KEY.") from exc
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._session = session or requests.Session()
        self._last_nonce = 0

    def _nonce(self) -> str:
        nonce = max(time.time_ns() // 1000, self._last_nonce + 1)
        self._last_nonce = nonce
        return str(nonce)

    def query(self, resource: Resource, query: LedgerQuery) -> LedgerPage:
        """POST one signed page request; returns the parsed page."""
        url_path = f"/0/private/{resource.value}"
        nonce = self._nonce()
        form = {"nonce": nonce, **query.to_params()}
        body = urllib.parse.urlencode(form)
        headers = {
            "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
            "API-Key": self._api_key,
            "API-Sign": sign_request(url_path, body, nonce, self._secret_key),
        }

        try:
            resp = self._session.post(
                self._base_url + url_path, data=body, headers=headers, timeout=self._timeout_s
            )
        except requests.RequestException as exc:
            raise RemoteError(f"{resource.value} request failed: {exc}") from exc

        if not resp.ok:
            raise RemoteError(
                f"{resource.value} request failed: status={resp.status_code} body={resp.text[:500]}"
            )
        try:
            payload = resp.json()
        except ValueError as exc:
            raise RemoteError(f"{resource.value} response is not JSON: {resp.text[:200]}") from exc

        logger.debug("%s ofs=%d -> %d bytes", resource.value, query.offset, len(resp.content))
        return parse_page(resource, payload)
