"""Classify and resolve resource locations.

A location is either an HTTP(S) URL or a filesystem path, given
absolutely or relative to a base location. locate() never raises:
every failure is reported through the returned Locator.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from urllib.parse import quote, urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from vendorpatch.core.log import logger

PROBE_TIMEOUT = 8.0

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]+$")
# RFC 3986 characters allowed unescaped in a URI reference, plus '%'
_URI_CHARS = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+$")
_PCT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class LocatorKind(str, Enum):
    UNKNOWN = "Unknown"
    FILE = "File"
    HTTP = "Http"


class Locator(BaseModel):
    """A classified, absolute resource location.

    reachable implies valid. For HTTP locators reachable is only
    True after a successful probe; an unprobed URL reports False.
    """

    model_config = ConfigDict(frozen=True)

    valid: bool = False
    reachable: bool = False
    kind: LocatorKind = LocatorKind.UNKNOWN
    absolute_location: str = ""
    error_message: str = ""


class ProxySettings(BaseModel):
    """Proxy used for HTTP probes and downloads.

    use_default_credentials defers authentication to the
    environment (proxy variables, .netrc) and wins over an
    explicit username/password when both are given.
    """

    url: str = Field(description="Proxy URL, e.g. http://proxy:8080")
    username: str | None = None
    password: SecretStr | None = None
    use_default_credentials: bool = False

    def client_kwargs(self) -> dict:
        """httpx.Client keyword arguments for this proxy."""
        if self.use_default_credentials:
            return {"proxy": self.url, "trust_env": True}

        if self.username:
            password = self.password.get_secret_value() if self.password else ""
            auth = (self.username, password)
            return {"proxy": httpx.Proxy(self.url, auth=auth), "trust_env": False}

        return {"proxy": self.url, "trust_env": False}


def is_absolute_uri(text: str) -> bool:
    """Return True if text is a well-formed absolute URI.

    Windows drive paths (C:\\x, C:/x) are not URIs: a scheme needs
    at least two characters.
    """
    if not text or not _URI_CHARS.match(text) or _PCT_ESCAPE.search(text):
        return False

    parts = urlsplit(text)
    if not parts.scheme or not _SCHEME.match(parts.scheme):
        return False
    if parts.scheme.lower() in ("http", "https", "ftp", "file"):
        return bool(parts.netloc) or parts.scheme.lower() == "file"
    return bool(parts.netloc or parts.path)


def _join_uri(path: str, base: str) -> str:
    relative = quote(path.replace("\\", "/").lstrip("/"), safe="/:@&=+$,;!~*'()%")
    return f"{base.rstrip('/' + chr(92))}/{relative}"


def probe_url(
    url: str,
    proxy: ProxySettings | None = None,
    timeout: float = PROBE_TIMEOUT,
    transport: httpx.BaseTransport | None = None,
) -> tuple[bool, str]:
    """Check that an HTTP(S) URL answers a HEAD request with 2xx.

    Redirects are followed and the connection is not reused.

    Returns:
        (reachable, error_message). error_message names the status
        or the transport failure when unreachable.
    """
    client_kwargs = proxy.client_kwargs() if proxy else {}
    if transport is not None:
        client_kwargs["transport"] = transport

    try:
        with httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"Connection": "close"},
            **client_kwargs,
        ) as client:
            response = client.head(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        message = f"{type(e).__name__}: {e}"
        logger.debug("Probe failed", url=url, error=message)
        return False, message

    if response.is_success:
        return True, ""

    message = f"HTTP {response.status_code} {response.reason_phrase}".strip()
    logger.debug("Probe rejected", url=url, status=response.status_code)
    return False, message


def locate(
    path: str,
    base_path: str | None = None,
    probe: bool = False,
    proxy: ProxySettings | None = None,
    timeout: float = PROBE_TIMEOUT,
    transport: httpx.BaseTransport | None = None,
) -> Locator:
    """Resolve a path or URL, optionally against a base location.

    Args:
        path: Absolute URL, absolute path, or relative location
        base_path: Base URL or directory for relative locations
        probe: Send a HEAD request to HTTP(S) locations
        proxy: Proxy for the probe
        timeout: Probe timeout in seconds
        transport: httpx transport override for the probe

    Returns:
        Locator describing the resolved location
    """
    candidate = None
    if is_absolute_uri(path):
        candidate = path
    elif base_path:
        joined = _join_uri(path, base_path)
        if is_absolute_uri(joined):
            candidate = joined

    if candidate and urlsplit(candidate).scheme.lower() in ("http", "https"):
        reachable, error = False, ""
        if probe:
            reachable, error = probe_url(candidate, proxy, timeout, transport)
        return Locator(
            valid=True,
            reachable=reachable,
            kind=LocatorKind.HTTP,
            absolute_location=candidate,
            error_message=error,
        )

    found = _existing_path(path) if path else None
    if found is None and path:
        base_dir = base_path or os.getcwd()
        found = _existing_path(os.path.join(base_dir, path))

    if found is not None:
        return Locator(
            valid=True,
            reachable=True,
            kind=LocatorKind.FILE,
            absolute_location=str(found),
        )

    return Locator(
        error_message=(
            f"'{path}' is neither a supported URL nor an existing "
            f"filesystem path"
        ),
    )


def _existing_path(path: str) -> Path | None:
    try:
        candidate = Path(path)
        if candidate.exists():
            return candidate.resolve()
    except (OSError, ValueError):
        pass
    return None
