"""Tests for locating package files by path or URL."""

import httpx
import pytest

from vendorpatch.resolve.locator import (
    LocatorKind,
    ProxySettings,
    is_absolute_uri,
    locate,
    probe_url,
)


def transport_returning(status, seen=None):
    """MockTransport answering every request with a fixed status."""
    def handler(request):
        if seen is not None:
            seen.append(request)
        return httpx.Response(status)
    return httpx.MockTransport(handler)


@pytest.mark.parametrize("text,expected", [
    ("https://example.com/pkg.exe", True),
    ("http://example.com", True),
    ("ftp://mirror.example.com/x.zip", True),
    ("C:\\Temp\\setup.exe", False),
    ("C:/Temp/setup.exe", False),
    ("sub\\file.exe", False),
    ("relative/file.exe", False),
    ("https://example.com/has space.exe", False),
    ("https://example.com/bad%zzescape", False),
    ("", False),
])
def test_is_absolute_uri(text, expected):
    assert is_absolute_uri(text) is expected


def test_absolute_url_without_probe():
    """Unprobed URLs are valid but never reported reachable."""
    locator = locate("https://example.com/pkg.exe")

    assert locator.valid is True
    assert locator.kind == LocatorKind.HTTP
    assert locator.reachable is False
    assert locator.absolute_location == "https://example.com/pkg.exe"
    assert locator.error_message == ""


def test_probe_success():
    seen = []
    locator = locate(
        "https://example.com/pkg.exe",
        probe=True,
        transport=transport_returning(200, seen),
    )

    assert locator.valid is True
    assert locator.reachable is True
    assert seen[0].method == "HEAD"
    assert seen[0].headers["connection"] == "close"


def test_probe_not_found():
    locator = locate(
        "https://example.com/pkg.exe",
        base_path=None,
        probe=True,
        transport=transport_returning(404),
    )

    assert locator.valid is True
    assert locator.kind == LocatorKind.HTTP
    assert locator.reachable is False
    assert "404" in locator.error_message


def test_probe_follows_redirects():
    def handler(request):
        if request.url.path == "/old.exe":
            return httpx.Response(302, headers={"Location": "https://example.com/new.exe"})
        return httpx.Response(200)

    reachable, error = probe_url(
        "https://example.com/old.exe", transport=httpx.MockTransport(handler)
    )

    assert reachable is True
    assert error == ""


def test_probe_transport_failure_does_not_raise():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    locator = locate(
        "https://example.com/pkg.exe",
        probe=True,
        transport=httpx.MockTransport(handler),
    )

    assert locator.valid is True
    assert locator.reachable is False
    assert locator.error_message.startswith("ConnectError")
    assert "connection refused" in locator.error_message


def test_relative_path_against_url_base():
    """Backslashes become slashes and the base's trailing slash is kept single."""
    locator = locate("sub\\file.exe", base_path="https://example.com/repo/")

    assert locator.kind == LocatorKind.HTTP
    assert locator.absolute_location == "https://example.com/repo/sub/file.exe"


def test_relative_path_is_percent_encoded():
    locator = locate("drivers/my driver.exe", base_path="https://example.com/repo")

    assert locator.absolute_location == (
        "https://example.com/repo/drivers/my%20driver.exe"
    )


def test_existing_absolute_file(tmp_path):
    installer = tmp_path / "setup.exe"
    installer.write_text("exe")

    locator = locate(str(installer))

    assert locator.valid is True
    assert locator.reachable is True
    assert locator.kind == LocatorKind.FILE
    assert locator.absolute_location == str(installer.resolve())


def test_file_relative_to_base_directory(tmp_path):
    (tmp_path / "pkg").mkdir()
    installer = tmp_path / "pkg" / "setup.exe"
    installer.write_text("exe")

    locator = locate("pkg/setup.exe", base_path=str(tmp_path))

    assert locator.kind == LocatorKind.FILE
    assert locator.absolute_location == str(installer.resolve())


def test_file_relative_to_current_directory(tmp_path, monkeypatch):
    (tmp_path / "setup.exe").write_text("exe")
    monkeypatch.chdir(tmp_path)

    locator = locate("setup.exe", base_path="")

    assert locator.kind == LocatorKind.FILE
    assert locator.absolute_location == str((tmp_path / "setup.exe").resolve())


def test_missing_file_is_invalid():
    locator = locate("C:\\nonexistent\\x.exe", base_path=None, probe=False)

    assert locator.valid is False
    assert locator.reachable is False
    assert locator.kind == LocatorKind.UNKNOWN
    assert locator.absolute_location == ""
    assert locator.error_message


def test_empty_path_is_invalid(tmp_path):
    locator = locate("", base_path=str(tmp_path))

    assert locator.valid is False


def test_non_http_uri_falls_back_to_filesystem():
    locator = locate("ftp://mirror.example.com/pkg.zip")

    assert locator.valid is False
    assert locator.kind == LocatorKind.UNKNOWN


def test_proxy_default_credentials_win():
    proxy = ProxySettings(
        url="http://proxy:8080",
        username="user",
        password="secret",
        use_default_credentials=True,
    )

    kwargs = proxy.client_kwargs()

    assert kwargs == {"proxy": "http://proxy:8080", "trust_env": True}


def test_proxy_explicit_credentials():
    proxy = ProxySettings(url="http://proxy:8080", username="user", password="secret")

    kwargs = proxy.client_kwargs()

    assert isinstance(kwargs["proxy"], httpx.Proxy)
    assert kwargs["trust_env"] is False
