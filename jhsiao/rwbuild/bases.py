"""Basic classes.

A Builder manufactures readers and writers on demand.  Readers and
writers are io.RawIOBase objects:

    reader: readinto(buf) -> int, 0 = no more data (for now)
    writer: write(data) -> int, flush()

Transforms wrap an inner builder and add one behavior to both the read
and the write path so whatever is written through a builder can be read
back through the same builder.  Sinks consume a builder and are the end
of a chain.
"""
__all__ = [
    'Builder',
    'Transform',
    'Sink',
    'Wrapper',
    'write_all',
]

import errno
import io

from .errors import ShortWriteError

class Builder(object):
    """Make readers and writers.

    Requesting a reader never creates or consumes a writer and vice
    versa.  Either may fail independently.
    """
    def reader(self):
        """Return a new reader."""
        raise NotImplementedError

    def writer(self):
        """Return a new writer."""
        raise NotImplementedError

    # Transforms
    def buffered(self, size=io.DEFAULT_BUFFER_SIZE):
        """Buffer reads and writes (io.BufferedReader/BufferedWriter)."""
        from . import coders
        return coders.CoderBuilder(self, coders.Buffered(), size)

    def zlib(self, level=-1):
        """Compress writes, decompress reads with zlib framing."""
        from . import coders
        return coders.CoderBuilder(self, coders.Zlib(), level)

    def gz(self, level=-1):
        """Compress writes, decompress reads with gzip framing."""
        from . import coders
        return coders.CoderBuilder(self, coders.Gzip(), level)

    def deflate(self, level=-1):
        """Compress writes, decompress reads as raw deflate."""
        from . import coders
        return coders.CoderBuilder(self, coders.Deflate(), level)

    def crc(self):
        """Track crc32 of all bytes passing through."""
        from . import coders
        return coders.CoderBuilder(self, coders.Crc32())

    def adler32(self):
        """Track adler32 of all bytes passing through."""
        from . import coders
        return coders.CoderBuilder(self, coders.Adler32())

    def chacha20(self, key, nonce):
        """Encrypt writes, decrypt reads with the chacha20 keystream."""
        from . import cipher
        return cipher.CipherBuilder(self, key, nonce, cipher.ChaCha20())

    def salsa20(self, key, nonce):
        """Encrypt writes, decrypt reads with the salsa20 keystream."""
        from . import cipher
        return cipher.CipherBuilder(self, key, nonce, cipher.Salsa20())

    def aes_ctr(self, key, nonce):
        """Encrypt writes, decrypt reads with AES in CTR mode."""
        from . import cipher
        return cipher.CipherBuilder(self, key, nonce, cipher.AesCtr())

    # Sinks
    def string(self, encoding='utf-8'):
        """Read/write whole strings."""
        from . import sinks
        return sinks.StringSink(self, encoding)

    def pickle(self, protocol=None):
        """Load/save python objects."""
        from . import sinks
        return sinks.PickleSink(self, protocol)


class Transform(Builder):
    """A builder wrapping another builder.

    Construction does no io.  Subclasses override reader()/writer() and
    wrap self.builder.reader()/self.builder.writer().
    """
    def __init__(self, builder):
        if not isinstance(builder, Builder):
            raise TypeError(
                'Expected a Builder, got {}'.format(type(builder).__name__))
        self.builder = builder

    def __repr__(self):
        return '{}({!r})'.format(type(self).__name__, self.builder)


class Sink(object):
    """End of a chain.

    Not a Builder, so it cannot be wrapped any further.
    """
    def __init__(self, builder):
        if not isinstance(builder, Builder):
            raise TypeError(
                'Expected a Builder, got {}'.format(type(builder).__name__))
        self._builder = builder

    @property
    def builder(self):
        return self._builder

    def __repr__(self):
        return '{}({!r})'.format(type(self).__name__, self._builder)


class Wrapper(io.RawIOBase):
    """A stream that owns an inner stream.

    Closing the Wrapper closes the inner stream.
    """
    def __init__(self, f):
        super(Wrapper, self).__init__()
        self.f = f

    def fileno(self):
        if self.f is None:
            raise ValueError('detached')
        return self.f.fileno()

    def detach(self):
        """Unwrap the stream and return it.

        This instance should no longer be used.
        """
        io.RawIOBase.close(self)
        ret = self.f
        self.f = None
        return ret

    def close(self):
        """Flush if applicable, then close the inner stream."""
        if self.closed:
            return
        try:
            super(Wrapper, self).close()
        finally:
            if self.f is not None:
                self.f.close()

    def flush(self):
        if self.closed:
            raise ValueError('I/O operation on closed file.')
        if self.f is not None and self.writable():
            self.f.flush()

    def readable(self):
        return False

    def writable(self):
        return False

    def seekable(self):
        return False


def write_all(f, data):
    """Write all of data to f, retrying short writes.

    Return the number of bytes written.  A 0 return from f means no
    progress can be made.  None (would block) is also an error since
    the caller has no way to resume the rest of data.
    """
    view = memoryview(data).cast('B')
    total = len(view)
    pos = 0
    while pos < total:
        amt = f.write(view[pos:])
        if amt is None:
            raise BlockingIOError(errno.EAGAIN, 'write would block', pos)
        if not amt:
            raise ShortWriteError(total, pos)
        pos += amt
    return total
