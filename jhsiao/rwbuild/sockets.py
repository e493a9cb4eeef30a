"""Read from and write to a TCP connection.

Every reader()/writer() of a TcpBuilder connects a new socket, so a
reader and a writer from the same builder are separate connections.
"""
__all__ = ['Sockfile', 'TcpBuilder']

import functools
import io
import socket
import sys

from . import bases
from .errors import ConstructionError

class Sockfile(io.RawIOBase):
    """Wrap a socket in a file-like object.

    shutdown observations:
        SHUT_RD: this side will return b'' whenever calling receive and
            no data is available.  The otherside can still write data
            and this side will receive it.

        SHUT_WR: This side can no longer write data.
                 The Other side will receive b'' whenever reading data.
    """
    SHUT_RD = socket.SHUT_RD
    SHUT_WR = socket.SHUT_WR
    SHUT_RDWR = socket.SHUT_RDWR
    def __init__(self, sock, mode='rwb'):
        """Wrap a socket.

        sock: socket to wrap
        mode: mode, determines whether read() or write() are available.
            Also determines what close() shuts down.
        """
        super(Sockfile, self).__init__()
        self.socket = sock
        if 'b' not in mode:
            print(
                'WARNING: Sockfile only handles binary io'
                ' but b not present in mode',
                file=sys.stderr)
        self._w = bool(set('wa+').intersection(mode))
        self._r = bool(set('r+').intersection(mode))
        if not (self._w or self._r):
            raise ValueError('Sockfile neither read nor write')
        if self._r and self._w:
            self._shut = socket.SHUT_RDWR
        elif self._r:
            self._shut = socket.SHUT_RD
        else:
            self._shut = socket.SHUT_WR
        self._readinto = self._block_to_none(sock.recv_into)
        self._send = self._block_to_none(sock.send)
        self._rpos = 0
        self._wpos = 0

    def fileno(self):
        return self.socket.fileno()

    @property
    def name(self):
        """Peer address, or a description of a bad socket."""
        try:
            return self.socket.getpeername()
        except OSError:
            return '"bad socket"'

    def shutdown(self, method=None):
        """Shutdown the wrapped socket.

        Method can be socket.SHUT_[RD|WR|RDWR].  If None, use RD, WR or
        RDWR depending on the mode the Sockfile was opened with.  An
        already disconnected socket is not an error.
        """
        if method is None:
            method = self._shut
        try:
            self.socket.shutdown(method)
        except OSError:
            pass

    def detach(self):
        """Detach from the wrapped socket and return it."""
        io.RawIOBase.close(self)
        ret = self.socket
        self.socket = None
        return ret

    def close(self):
        """Shutdown and close the socket."""
        if self.socket is not None:
            self.shutdown()
            self.detach().close()

    def readable(self):
        return self._r

    def writable(self):
        return self._w

    def seekable(self):
        return False

    def tell(self):
        """Bytes read if readable, else bytes written."""
        if self._r:
            return self._rpos
        return self._wpos

    def rtell(self):
        """Total number of bytes read so far."""
        return self._rpos

    def wtell(self):
        """Total bytes written so far."""
        return self._wpos

    @staticmethod
    def _block_to_none(func):
        """Convert socket timeout and EAGAIN, EWOULDBLOCK to None."""
        @functools.wraps(func)
        def wrap(arg):
            try:
                return func(arg)
            except (socket.timeout, BlockingIOError):
                return None
        return wrap

    def readinto(self, buf):
        if not self._r:
            raise io.UnsupportedOperation('read')
        amt = self._readinto(buf)
        if amt:
            self._rpos += amt
        return amt

    def write(self, data):
        if not self._w:
            raise io.UnsupportedOperation('write')
        amt = self._send(data)
        if amt:
            self._wpos += amt
        return amt


class TcpBuilder(bases.Builder):
    """Connect a new socket per reader/writer.

    A source: it wraps nothing.
    """
    def __init__(self, address, timeout=None):
        """Initialize a TcpBuilder.

        address: (host, port)
        timeout: float or None
            Connect timeout and the socket's timeout afterwards.  A
            timed out read/write returns None.
        """
        self.address = address
        self.timeout = timeout

    def __repr__(self):
        return 'TcpBuilder({!r})'.format(self.address)

    def _connect(self, mode):
        try:
            sock = socket.create_connection(self.address, self.timeout)
        except OSError as e:
            raise ConstructionError.wrap(
                e, 'failed to connect to {!r}'.format(self.address)) from e
        return Sockfile(sock, mode)

    def reader(self):
        return self._connect('rb')

    def writer(self):
        return self._connect('wb')
