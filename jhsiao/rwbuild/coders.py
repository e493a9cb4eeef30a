"""Transforms built from an encoder/decoder factory.

A coder is any object with

    encoder(writer, config) -> writer
    decoder(reader, config) -> reader

CoderBuilder does no encoding itself.  It passes its config (buffer
size, compression level...) to the coder each time a reader or writer
is made.  The returned encoder/decoder owns the inner writer/reader and
closes it when closed.

compression levels: 0 (none) to 9 (best), -1 is zlib's default.
"""
__all__ = [
    'Compression',
    'CoderBuilder',
    'Buffered',
    'BufferedWriter',
    'Zlib',
    'Gzip',
    'Deflate',
    'Crc32',
    'Adler32',
    'Encoder',
    'Decoder',
    'ChecksumReader',
    'ChecksumWriter',
]

import io
import zlib

from . import bases
from .errors import TransformError

class Compression(object):
    """Named compression levels."""
    @staticmethod
    def none():
        return 0

    @staticmethod
    def fast():
        return 1

    @staticmethod
    def best():
        return 9

    @staticmethod
    def default():
        return 6


class CoderBuilder(bases.Transform):
    """Wrap readers with coder.decoder, writers with coder.encoder."""
    def __init__(self, builder, coder, config=None):
        super(CoderBuilder, self).__init__(builder)
        self.coder = coder
        self.config = config

    def __repr__(self):
        return 'CoderBuilder({!r}, {!r}, {!r})'.format(
            self.builder, self.coder, self.config)

    def reader(self):
        return self.coder.decoder(self.builder.reader(), self.config)

    def writer(self):
        return self.coder.encoder(self.builder.writer(), self.config)


class Coder(object):
    def encoder(self, writer, config):
        raise NotImplementedError

    def decoder(self, reader, config):
        raise NotImplementedError

    def __repr__(self):
        return '{}()'.format(type(self).__name__)


#------------------------------
# buffering
#------------------------------
class BufferedWriter(io.BufferedWriter):
    """io.BufferedWriter whose flush() also flushes the raw writer."""
    def flush(self):
        super(BufferedWriter, self).flush()
        self.raw.flush()


class Buffered(Coder):
    """io.BufferedReader/BufferedWriter, config is the buffer size."""
    def encoder(self, writer, size=None):
        return BufferedWriter(writer, size or io.DEFAULT_BUFFER_SIZE)

    def decoder(self, reader, size=None):
        return io.BufferedReader(reader, size or io.DEFAULT_BUFFER_SIZE)


#------------------------------
# compression
#------------------------------
class Encoder(bases.Wrapper):
    """Compress everything written.

    flush() emits a sync-flush block so everything written so far can be
    decompressed.  close() finishes the compressed stream.
    """
    def __init__(self, f, level=-1, wbits=zlib.MAX_WBITS):
        super(Encoder, self).__init__(f)
        if level is None:
            level = -1
        self.coder = zlib.compressobj(level, zlib.DEFLATED, wbits)
        self.finished = False

    def writable(self):
        return True

    def _emit(self, data):
        if data:
            bases.write_all(self.f, data)

    def write(self, data):
        if self.closed or self.finished:
            raise ValueError('write to closed file')
        view = memoryview(data).cast('B')
        self._emit(self.coder.compress(view))
        return len(view)

    def flush(self):
        if self.closed:
            raise ValueError('I/O operation on closed file.')
        if not self.finished:
            self._emit(self.coder.flush(zlib.Z_SYNC_FLUSH))
        self.f.flush()

    def finish(self):
        """Write the end of the compressed stream.

        No more writes are allowed afterwards.
        """
        if not self.finished:
            self.finished = True
            self._emit(self.coder.flush(zlib.Z_FINISH))
            self.f.flush()

    def close(self):
        if self.closed:
            return
        try:
            self.finish()
        finally:
            super(Encoder, self).close()


class Decoder(bases.Wrapper):
    """Decompress while reading.

    Reaching the end of the inner reader before the end of the
    compressed stream reads as 0: the inner stream may still grow (see
    shared.SharedBuilder).  Check `finished` to tell the difference.
    """
    def __init__(
            self, f, wbits=zlib.MAX_WBITS, chunksize=io.DEFAULT_BUFFER_SIZE):
        super(Decoder, self).__init__(f)
        self.coder = zlib.decompressobj(wbits)
        self.chunksize = chunksize
        self._read = getattr(f, 'read1', f.read)
        self.pending = b''

    @property
    def finished(self):
        """Whether the end of the compressed stream was reached."""
        return self.coder.eof

    def readable(self):
        return True

    def _decompress(self, data, target):
        try:
            return self.coder.decompress(data, target)
        except zlib.error as e:
            raise TransformError('decompression failed: {}'.format(e)) from e

    def readinto(self, buf):
        view = memoryview(buf).cast('B')
        target = len(view)
        while target and not self.pending:
            if self.coder.eof:
                return 0
            data = self.coder.unconsumed_tail
            if not data:
                # output held back by max_length comes before new input
                self.pending = self._decompress(b'', target)
                if self.pending:
                    break
                data = self._read(self.chunksize)
                if data is None:
                    return None
                elif not data:
                    return 0
            self.pending = self._decompress(data, target)
        amt = min(target, len(self.pending))
        view[:amt] = self.pending[:amt]
        self.pending = self.pending[amt:]
        return amt


class _ZlibCoder(Coder):
    WBITS = zlib.MAX_WBITS

    def encoder(self, writer, level=-1):
        return Encoder(writer, level, self.WBITS)

    def decoder(self, reader, config=None):
        return Decoder(reader, self.WBITS)


class Zlib(_ZlibCoder):
    """zlib header and adler32 trailer."""
    WBITS = zlib.MAX_WBITS


class Gzip(_ZlibCoder):
    """gzip header and crc32 trailer, single member."""
    WBITS = 16 + zlib.MAX_WBITS


class Deflate(_ZlibCoder):
    """Raw deflate, no header or trailer."""
    WBITS = -zlib.MAX_WBITS


#------------------------------
# checksums
#------------------------------
class ChecksumReader(bases.Wrapper):
    """Pass reads through, accumulating a checksum of them."""
    def __init__(self, f, func, initial):
        super(ChecksumReader, self).__init__(f)
        self.func = func
        self.checksum = initial
        self.amount = 0

    def readable(self):
        return True

    def readinto(self, buf):
        amt = self.f.readinto(buf)
        if amt:
            self.checksum = self.func(
                memoryview(buf).cast('B')[:amt], self.checksum)
            self.amount += amt
        return amt


class ChecksumWriter(bases.Wrapper):
    """Pass writes through, accumulating a checksum of them."""
    def __init__(self, f, func, initial):
        super(ChecksumWriter, self).__init__(f)
        self.func = func
        self.checksum = initial
        self.amount = 0

    def writable(self):
        return True

    def write(self, data):
        view = memoryview(data).cast('B')
        amt = self.f.write(view)
        if amt:
            self.checksum = self.func(view[:amt], self.checksum)
            self.amount += amt
        return amt


class _ChecksumCoder(Coder):
    INITIAL = 0

    @staticmethod
    def func(data, value):
        raise NotImplementedError

    def encoder(self, writer, config=None):
        return ChecksumWriter(writer, self.func, self.INITIAL)

    def decoder(self, reader, config=None):
        return ChecksumReader(reader, self.func, self.INITIAL)


class Crc32(_ChecksumCoder):
    INITIAL = 0
    func = staticmethod(zlib.crc32)


class Adler32(_ChecksumCoder):
    INITIAL = 1
    func = staticmethod(zlib.adler32)
