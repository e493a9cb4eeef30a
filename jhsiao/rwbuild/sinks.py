"""Ends of a chain.

Sinks take a builder and offer a different interface on top of it:
whole strings or pickled python objects.  They are not Builders and
cannot be chained further.

Writes go through a single write() call.  Fewer bytes accepted than
given raises ShortWriteError rather than retrying.  The writer is then
flushed and closed so any trailers (compression) reach the source and
process pipes see EOF.
"""
__all__ = ['StringSink', 'PickleSink']

import errno
import io
import pickle

from . import bases
from .errors import ShortWriteError, TransformError

def _write_once(builder, data):
    """Write data through a fresh writer in a single call."""
    with builder.writer() as f:
        amt = f.write(data)
        if amt != len(data):
            raise ShortWriteError(len(data), amt)
        f.flush()


class StringSink(bases.Sink):
    """Read and write whole strings."""
    def __init__(self, builder, encoding='utf-8'):
        super(StringSink, self).__init__(builder)
        self.encoding = encoding

    def write_string(self, text):
        """Write text through a new writer."""
        _write_once(self.builder, text.encode(self.encoding))

    def read_bytes(self):
        """Read a new reader to the end.

        A reader with nothing available yet (would block) raises
        BlockingIOError.
        """
        with self.builder.reader() as f:
            data = f.read()
        if data is None:
            raise BlockingIOError(errno.EAGAIN, 'read would block', 0)
        return data

    def read_string(self):
        """Read a new reader to the end and decode it."""
        data = self.read_bytes()
        try:
            return data.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise TransformError(
                'could not decode as {}: {}'.format(self.encoding, e)) from e

    def __str__(self):
        return self.read_string()


class PickleSink(bases.Sink):
    """Load and save python objects."""
    def __init__(self, builder, protocol=None):
        super(PickleSink, self).__init__(builder)
        if protocol is None:
            protocol = pickle.HIGHEST_PROTOCOL
        self.protocol = protocol

    def save(self, value):
        """Pickle value through a new writer."""
        _write_once(self.builder, pickle.dumps(value, self.protocol))

    def load(self):
        """Unpickle one value from a new reader."""
        with io.BufferedReader(self.builder.reader()) as f:
            try:
                return pickle.load(f)
            except (
                    pickle.UnpicklingError, EOFError, ImportError,
                    AttributeError, ValueError, KeyError, IndexError) as e:
                raise TransformError('could not unpickle: {}'.format(e)) from e
