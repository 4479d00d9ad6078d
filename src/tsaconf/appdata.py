"""Namespaced application file storage.

A minimal folder/file abstraction for secret material such as the TSA
PKCS#12 keystore. Each folder is a directory under the application data
root and holds flat, named files.

Directory layout::

    ~/.tsaconf/
    └── appdata/
        └── signature/
            └── tsa.p12
"""

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger("tsaconf.appdata")

DEFAULT_APPDATA_DIR = Path.home() / ".tsaconf" / "appdata"


class NotFoundError(FileNotFoundError):
    """Raised when a folder or file does not exist."""


def _check_name(name: str) -> str:
    if not name or name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise ValueError(f"Invalid name: {name!r}")
    return name


class SimpleFile:
    """A named file inside a :class:`SimpleFolder`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def name(self) -> str:
        return self._path.name

    def get_content(self) -> bytes:
        """Read the whole file.

        Raises:
            NotFoundError: If the file was removed in the meantime.
        """
        try:
            return self._path.read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError(f"File not found: {self.name}") from exc

    def put_content(self, content: bytes) -> None:
        self._path.write_bytes(content)

    def delete(self) -> None:
        """Delete the file.

        Raises:
            NotFoundError: If the file does not exist.
        """
        try:
            self._path.unlink()
        except FileNotFoundError as exc:
            raise NotFoundError(f"File not found: {self.name}") from exc
        logger.info("Deleted %s/%s", self._path.parent.name, self.name)


class SimpleFolder:
    """A flat folder of named files."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def name(self) -> str:
        return self._path.name

    def file_exists(self, name: str) -> bool:
        return (self._path / _check_name(name)).is_file()

    def get_file(self, name: str) -> SimpleFile:
        """Look up a file by name.

        Raises:
            NotFoundError: If the file does not exist.
            ValueError: If ``name`` is not a single path component.
        """
        path = self._path / _check_name(name)
        if not path.is_file():
            raise NotFoundError(f"File not found: {self.name}/{name}")
        return SimpleFile(path)

    def new_file(self, name: str, content: bytes = b"") -> SimpleFile:
        """Create or overwrite a file."""
        file = SimpleFile(self._path / _check_name(name))
        file.put_content(content)
        logger.info("Wrote %s/%s (%d bytes)", self.name, name, len(content))
        return file

    def delete_file(self, name: str) -> None:
        self.get_file(name).delete()


class AppData:
    """Root of the per-application folders.

    Args:
        base_dir: Root directory for application data.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self.base = base_dir or DEFAULT_APPDATA_DIR
        self.base.mkdir(parents=True, exist_ok=True)

    def get_folder(self, name: str) -> SimpleFolder:
        """Return an existing folder.

        Raises:
            NotFoundError: If the folder does not exist.
        """
        path = self.base / _check_name(name)
        if not path.is_dir():
            raise NotFoundError(f"Folder not found: {name}")
        return SimpleFolder(path)

    def new_folder(self, name: str) -> SimpleFolder:
        path = self.base / _check_name(name)
        path.mkdir(parents=True, exist_ok=True)
        return SimpleFolder(path)

    def get_or_create_folder(self, name: str) -> SimpleFolder:
        """Return the folder, creating it on first use."""
        try:
            return self.get_folder(name)
        except NotFoundError:
            return self.new_folder(name)

