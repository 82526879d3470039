"""HTTP client for the engine API with config-driven request headers."""

import logging
import platform
from collections.abc import Mapping
from urllib.parse import urlparse

import httpx

from dockcli import __version__
from dockcli.config import ConfigFile

logger = logging.getLogger(__name__)

DEFAULT_HOST = "unix:///var/run/docker.sock"
API_VERSION = "1.22"
CLIENT_NAME = "Docker"
DEFAULT_TIMEOUT = 30.0

# httpx needs some host in the URL even when talking over a unix socket
_UDS_BASE_URL = "http://docker"


class DockerClientError(Exception):
    """Base class for failures talking to the engine."""


class DaemonUnreachableError(DockerClientError):
    """Raised when the engine can't be reached at all."""


class APIError(DockerClientError):
    """Raised for non-2xx responses from the engine."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


def user_agent() -> str:
    """Build the client identity header value, e.g. ``Docker-Client/0.1.0 (linux)``."""
    return f"{CLIENT_NAME}-Client/{__version__} ({platform.system().lower()})"


def build_headers(
    mandatory: Mapping[str, str], configured: Mapping[str, str]
) -> dict[str, str]:
    """Merge configured headers with the client's mandatory headers.

    Names compare case-insensitively; on a collision the mandatory header
    wins, so a configured ``user-agent`` can't replace the client identity.
    """
    reserved = {name.lower() for name in mandatory}
    headers = {
        name: value
        for name, value in configured.items()
        if name.lower() not in reserved
    }
    headers.update(mandatory)
    return headers


def parse_host(host: str) -> tuple[str, str | None]:
    """Turn a -H/DOCKER_HOST value into ``(base_url, unix_socket_path)``."""
    if host.startswith("unix://"):
        path = host[len("unix://"):]
        if not path:
            raise ValueError(f"Invalid unix socket address {host!r}")
        return _UDS_BASE_URL, path

    if "://" not in host:
        host = f"tcp://{host}"
    parsed = urlparse(host)
    if parsed.scheme not in ("tcp", "http", "https"):
        raise ValueError(f"Unsupported host scheme {parsed.scheme!r} in {host!r}")

    scheme = "http" if parsed.scheme == "tcp" else parsed.scheme
    hostname = parsed.hostname or "127.0.0.1"
    if ":" in hostname:
        hostname = f"[{hostname}]"
    netloc = f"{hostname}:{parsed.port}" if parsed.port else hostname
    return f"{scheme}://{netloc}", None


class DockerClient:
    """Issues engine API requests carrying the configured HTTP headers.

    The ConfigFile is loaded once by the caller and reused for every request
    made through this client.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        config: ConfigFile | None = None,
        transport: httpx.BaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.config = config or ConfigFile()
        self.mandatory_headers = {"User-Agent": user_agent()}

        base_url, uds = parse_host(host)
        if transport is None and uds:
            transport = httpx.HTTPTransport(uds=uds)
        self._http = httpx.Client(
            base_url=base_url, transport=transport, timeout=timeout
        )

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, params: dict | None = None):
        url = f"/v{API_VERSION}{path}"
        headers = build_headers(self.mandatory_headers, self.config.http_headers)
        logger.debug("%s %s%s", method, self._http.base_url, url)

        try:
            response = self._http.request(method, url, params=params, headers=headers)
        except httpx.TransportError as e:
            raise DaemonUnreachableError(
                f"Cannot connect to the Docker daemon at {self._http.base_url}: {e}"
            ) from e

        if response.is_error:
            raise APIError(_error_message(response), response.status_code)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"Unexpected non-JSON response from daemon for {url}",
                response.status_code,
            ) from e

    def containers(self, all: bool = False) -> list[dict]:
        params = {"all": "1"} if all else None
        return self._request("GET", "/containers/json", params=params) or []

    def version(self) -> dict:
        return self._request("GET", "/version") or {}

    def info(self) -> dict:
        return self._request("GET", "/info") or {}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        detail = body["message"]
    else:
        detail = response.text.strip() or response.reason_phrase
    return f"Error response from daemon ({response.status_code}): {detail}"
