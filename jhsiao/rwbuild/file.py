"""Read from and write to a file on disk."""
__all__ = ['FileBuilder']

import io
import os

from . import bases
from .errors import ConstructionError

class FileBuilder(bases.Builder):
    """Open the file at path for every reader/writer.

    A source: it wraps nothing.  Handles are unbuffered io.FileIO;
    chain .buffered() for buffering.
    """
    def __init__(self, path, truncate=False):
        """Initialize a FileBuilder.

        path: str or os.PathLike
            The file to read/write.
        truncate: bool
            Truncate the file when opening a writer.  Otherwise writes
            overwrite the file from the start and any longer tail of the
            old contents remains.
        """
        self.path = os.fspath(path)
        self.truncate = truncate

    def __repr__(self):
        return 'FileBuilder({!r})'.format(self.path)

    def reader(self):
        try:
            return io.FileIO(self.path, 'rb')
        except OSError as e:
            raise ConstructionError.wrap(
                e, 'failed to open {!r} for reading'.format(self.path)) from e

    def writer(self):
        flags = os.O_WRONLY | os.O_CREAT | getattr(os, 'O_BINARY', 0)
        if self.truncate:
            flags |= os.O_TRUNC
        try:
            fd = os.open(self.path, flags, 0o666)
        except OSError as e:
            raise ConstructionError.wrap(
                e, 'failed to open {!r} for writing'.format(self.path)) from e
        return io.FileIO(fd, 'wb')
