"""In-memory source shared between readers and writers.

All readers and writers made by a SharedBuilder reference the same
SharedBuffer.  Writers append, readers keep their own cursor.  A read
that returns 0 only means the reader caught up: a later write makes
more data available to the same reader.

Every access to the backing bytearray holds the buffer's lock, but only
for the copy itself, so readers and writers may live on different
threads.
"""
__all__ = ['SharedBuffer', 'SharedBuilder', 'SharedReader', 'SharedWriter']

import io
import threading

from . import bases

class SharedBuffer(object):
    """A bytearray guarded by a lock."""
    def __init__(self, data=b''):
        self._data = bytearray(data)
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._data)

    def getvalue(self):
        """Return a copy of the current contents."""
        with self._lock:
            return bytes(self._data)

    def copyinto(self, pos, buf):
        """Copy data starting at pos into buf.

        Return the number of bytes copied.
        """
        with self._lock:
            chunk = self._data[pos:pos+len(buf)]
        amt = len(chunk)
        buf[:amt] = chunk
        return amt

    def append(self, data):
        """Append data, return the amount appended."""
        with self._lock:
            self._data += data
        return len(data)


class SharedReader(bases.Wrapper):
    """Read a SharedBuffer from a private cursor."""
    def __init__(self, buffer):
        super(SharedReader, self).__init__(buffer)
        self.pos = 0

    def fileno(self):
        raise io.UnsupportedOperation('fileno')

    def readable(self):
        return True

    def readinto(self, buf):
        if self.closed:
            raise ValueError('read from closed file')
        view = memoryview(buf).cast('B')
        amt = self.f.copyinto(self.pos, view)
        self.pos += amt
        return amt

    def tell(self):
        return self.pos

    def close(self):
        # The buffer is shared, never close it.
        self.f = None
        super(SharedReader, self).close()


class SharedWriter(bases.Wrapper):
    """Append to a SharedBuffer."""
    def fileno(self):
        raise io.UnsupportedOperation('fileno')

    def writable(self):
        return True

    def write(self, data):
        if self.closed:
            raise ValueError('write to closed file')
        return self.f.append(memoryview(data).cast('B'))

    def flush(self):
        pass

    def close(self):
        self.f = None
        super(SharedWriter, self).close()


class SharedBuilder(bases.Builder):
    """Readers and writers over a shared in-memory buffer.

    A source: it wraps nothing.
    """
    def __init__(self, data=b''):
        self.buffer = SharedBuffer(data)

    def reader(self):
        return SharedReader(self.buffer)

    def writer(self):
        return SharedWriter(self.buffer)

    def getvalue(self):
        """Return a copy of everything written so far."""
        return self.buffer.getvalue()

    def __repr__(self):
        return 'SharedBuilder(<{} bytes>)'.format(len(self.buffer))
