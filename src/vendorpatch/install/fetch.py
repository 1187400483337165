"""Bring package files onto local disk."""

from __future__ import annotations

import hashlib
import shutil
import tarfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import unquote, urlsplit

import httpx

from vendorpatch.core.errors import ExtractionError, FetchError
from vendorpatch.core.log import logger
from vendorpatch.resolve.locator import Locator, LocatorKind, ProxySettings

DOWNLOAD_TIMEOUT = 60.0
_CHUNK_SIZE = 1 << 16


def verify_checksum(path: Path, expected: str) -> None:
    """Compare a file's SHA-256 against the vendor checksum.

    An empty expected value skips the check.

    Raises:
        FetchError: If the digests differ
    """
    if not expected:
        return

    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            digest.update(chunk)

    if digest.hexdigest().lower() != expected.strip().lower():
        raise FetchError(
            f"Checksum mismatch for {path.name}: expected {expected}, "
            f"got {digest.hexdigest()}"
        )


def _download(
    url: str,
    target: Path,
    proxy: ProxySettings | None,
    transport: httpx.BaseTransport | None,
) -> None:
    client_kwargs = proxy.client_kwargs() if proxy else {}
    if transport is not None:
        client_kwargs["transport"] = transport

    try:
        with httpx.Client(
            timeout=DOWNLOAD_TIMEOUT, follow_redirects=True, **client_kwargs
        ) as client, client.stream("GET", url) as response:
            response.raise_for_status()
            with open(target, "wb") as f:
                for chunk in response.iter_bytes(_CHUNK_SIZE):
                    f.write(chunk)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        target.unlink(missing_ok=True)
        raise FetchError(f"Download of {url} failed: {e}") from e


def fetch_file(
    locator: Locator,
    target_dir: Path,
    checksum: str = "",
    proxy: ProxySettings | None = None,
    transport: httpx.BaseTransport | None = None,
) -> Path:
    """Copy or download a located file into target_dir.

    Args:
        locator: Resolved location of the file
        target_dir: Directory the file is placed in
        checksum: Expected SHA-256 hex digest (empty to skip)
        proxy: Proxy for HTTP downloads
        transport: httpx transport override

    Returns:
        Path of the local copy

    Raises:
        FetchError: If the locator is invalid, the transfer fails
            or the checksum does not match
    """
    if not locator.valid:
        raise FetchError(locator.error_message or "Invalid locator")

    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    if locator.kind == LocatorKind.HTTP:
        name = unquote(PurePosixPath(urlsplit(locator.absolute_location).path).name)
        if not name:
            raise FetchError(f"No file name in {locator.absolute_location}")
        target = target_dir / name
        logger.info("Downloading", url=locator.absolute_location, target=str(target))
        _download(locator.absolute_location, target, proxy, transport)
    else:
        source = Path(locator.absolute_location)
        if not source.is_file():
            raise FetchError(f"{source} is not a file")
        target = target_dir / source.name
        if target.resolve() != source.resolve():
            logger.debug("Copying", source=str(source), target=str(target))
            try:
                shutil.copy2(source, target)
            except OSError as e:
                raise FetchError(f"Copy of {source} failed: {e}") from e

    verify_checksum(target, checksum)
    return target


class Extractor(Protocol):
    """Unpacks an installer archive into a working directory."""

    def extract(self, archive: Path, destination: Path) -> None:
        ...


class ArchiveExtractor:
    """Unpacks archive formats shutil understands.

    Anything else (a self-contained .exe, a .cmd script) is left
    as it is.
    """

    def __init__(self):
        self.suffixes = tuple(
            ext for _, extensions, _ in shutil.get_unpack_formats()
            for ext in extensions
        )

    def extract(self, archive: Path, destination: Path) -> None:
        if not str(archive).lower().endswith(self.suffixes):
            return

        logger.debug("Extracting", archive=str(archive), destination=str(destination))
        try:
            _check_members(archive, Path(destination))
            shutil.unpack_archive(archive, destination)
        except (shutil.ReadError, ValueError, OSError, tarfile.TarError, zipfile.BadZipFile) as e:
            raise ExtractionError(f"Could not extract {archive.name}: {e}") from e


def _member_names(archive: Path) -> list[str]:
    """Member paths of a zip or tar archive, link targets included."""
    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zf:
            return zf.namelist()
    if tarfile.is_tarfile(archive):
        names = []
        with tarfile.open(archive) as tf:
            for member in tf.getmembers():
                names.append(member.name)
                if member.issym():
                    names.append(str(Path(member.name).parent / member.linkname))
                elif member.islnk():
                    names.append(member.linkname)
        return names
    return []


def _check_members(archive: Path, destination: Path) -> None:
    """Reject members that would land outside destination.

    Raises:
        ExtractionError: On an absolute or escaping member path
    """
    root = destination.resolve()
    for name in _member_names(archive):
        path = Path(name)
        if path.is_absolute() or name.startswith(("/", "\\")):
            raise ExtractionError(
                f"{archive.name} contains an absolute path entry: {name}"
            )
        try:
            (root / path).resolve().relative_to(root)
        except ValueError:
            raise ExtractionError(
                f"{archive.name} contains an unsafe relative path: {name}"
            ) from None
