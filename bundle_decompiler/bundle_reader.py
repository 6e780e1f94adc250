"""Reads bundle files from disk."""
import os
from dataclasses import dataclass

MAX_BUNDLE_BYTES = 64 * 1024 * 1024


class InputReadError(Exception):
    """Error reading a bundle file."""
    pass


@dataclass
class BundleSource:
    """A bundle read from disk."""
    path: str
    filename: str
    text: str
    size: int


class BundleReader:
    """Reads bundle files as text."""

    def __init__(self, max_bytes: int = MAX_BUNDLE_BYTES):
        self.max_bytes = max_bytes

    def read(self, path: str) -> BundleSource:
        """Read a bundle; undecodable bytes are replaced, never fatal."""
        if not os.path.isfile(path):
            raise InputReadError(f"{path} not found")
        try:
            size = os.path.getsize(path)
            if size > self.max_bytes:
                raise InputReadError(f"{path} is larger than {self.max_bytes} bytes")
            with open(path, 'rb') as f:
                raw = f.read()
        except OSError as e:
            raise InputReadError(f"Failed to read bundle: {e}")
        return BundleSource(
            path=path,
            filename=os.path.basename(path),
            text=raw.decode('utf-8', errors='replace'),
            size=size,
        )
