"""Streaming cipher transform.

Writers encrypt and readers decrypt with a keystream cipher.  The key
and nonce are fixed when the CipherBuilder is created; every reader and
every writer starts its own keystream from position 0, so one writer
followed by one reader over the same bytes lines up exactly.

The keystream only advances over bytes that were actually transferred:
a reader transforms just the bytes its inner reader returned and a
writer pushes the whole encrypted chunk through before returning.

Algorithms are small factory objects:

    KEY_SIZES: allowed key lengths
    NONCE_SIZES: allowed nonce lengths
    limit(nonce): keystream bytes available, None if unbounded
    __call__(key, nonce): context with update(data) -> bytes
"""
__all__ = [
    'ChaCha20',
    'AesCtr',
    'Salsa20',
    'Keystream',
    'CipherBuilder',
    'CipherReader',
    'CipherWriter',
]

from cryptography.exceptions import AlreadyFinalized
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from Crypto.Cipher import Salsa20 as salsa20

from . import bases
from .errors import TransformError

class Algorithm(object):
    KEY_SIZES = ()
    NONCE_SIZES = ()

    def check(self, key, nonce):
        """Raise ValueError if key or nonce have the wrong size."""
        if len(key) not in self.KEY_SIZES:
            raise ValueError(
                '{} key must be {} bytes, got {}'.format(
                    self.name, ' or '.join(map(str, self.KEY_SIZES)),
                    len(key)))
        if len(nonce) not in self.NONCE_SIZES:
            raise ValueError(
                '{} nonce must be {} bytes, got {}'.format(
                    self.name, ' or '.join(map(str, self.NONCE_SIZES)),
                    len(nonce)))

    @property
    def name(self):
        return type(self).__name__

    def limit(self, nonce):
        return None

    def __call__(self, key, nonce):
        raise NotImplementedError

    def __repr__(self):
        return '{}()'.format(self.name)


class ChaCha20(Algorithm):
    """IETF chacha20 (RFC 8439).

    12-byte nonces start at block counter 0.  A 16-byte nonce is used
    as-is: 4-byte little-endian block counter followed by the nonce.
    """
    KEY_SIZES = (32,)
    NONCE_SIZES = (12, 16)
    BLOCK = 64
    COUNTER = 1 << 32

    def _iv(self, nonce):
        if len(nonce) == 12:
            return b'\x00\x00\x00\x00' + nonce
        return nonce

    def limit(self, nonce):
        counter = int.from_bytes(self._iv(nonce)[:4], 'little')
        return (self.COUNTER - counter) * self.BLOCK

    def __call__(self, key, nonce):
        return Cipher(
            algorithms.ChaCha20(key, self._iv(nonce)), mode=None).encryptor()


class AesCtr(Algorithm):
    """AES in counter mode, nonce is the 16-byte initial counter block."""
    KEY_SIZES = (16, 24, 32)
    NONCE_SIZES = (16,)

    def __call__(self, key, nonce):
        return Cipher(algorithms.AES(key), modes.CTR(nonce)).encryptor()


class Salsa20(Algorithm):
    """Salsa20 with an 8-byte nonce, block counter starts at 0.

    cryptography has no salsa20, pycryptodome provides it.  Its 64-bit
    block counter is treated as unbounded.
    """
    KEY_SIZES = (16, 32)
    NONCE_SIZES = (8,)

    class Context(object):
        """Give a pycryptodome cipher the update() interface."""
        def __init__(self, cipher):
            self.cipher = cipher

        def update(self, data):
            return self.cipher.encrypt(bytes(data))

    def __call__(self, key, nonce):
        return self.Context(salsa20.new(key=key, nonce=nonce))


class Keystream(object):
    """A cipher context and how far into its keystream it is."""
    def __init__(self, context, limit=None):
        self.context = context
        self.limit = limit
        self.pos = 0

    def apply(self, view):
        """Xor the next len(view) keystream bytes into view in place."""
        amt = len(view)
        if not amt:
            return 0
        if self.limit is not None and self.pos + amt > self.limit:
            raise TransformError(
                'keystream exhausted: {} + {} > {} bytes'.format(
                    self.pos, amt, self.limit))
        try:
            out = self.context.update(view)
        except (AlreadyFinalized, ValueError) as e:
            raise TransformError('cipher failed: {}'.format(e)) from e
        if len(out) != amt:
            raise TransformError(
                'cipher returned {} bytes for {}'.format(len(out), amt))
        view[:] = out
        self.pos += amt
        return amt


class CipherReader(bases.Wrapper):
    """Decrypt while reading.

    If decrypting fails (keystream exhausted), the bytes already taken
    from the inner reader are lost and this reader cannot be used any
    further.
    """
    def __init__(self, f, keystream):
        super(CipherReader, self).__init__(f)
        self.keystream = keystream

    def readable(self):
        return True

    def readinto(self, buf):
        amt = self.f.readinto(buf)
        if amt:
            self.keystream.apply(memoryview(buf).cast('B')[:amt])
        return amt


class CipherWriter(bases.Wrapper):
    """Encrypt while writing.

    The caller's data is copied before encrypting, never modified.
    """
    def __init__(self, f, keystream):
        super(CipherWriter, self).__init__(f)
        self.keystream = keystream

    def writable(self):
        return True

    def write(self, data):
        if self.closed:
            raise ValueError('write to closed file')
        scratch = bytearray(data)
        self.keystream.apply(memoryview(scratch))
        return bases.write_all(self.f, scratch)


class CipherBuilder(bases.Transform):
    """Encrypt writes and decrypt reads of the wrapped builder."""
    def __init__(self, builder, key, nonce, algorithm):
        super(CipherBuilder, self).__init__(builder)
        key = bytes(key)
        nonce = bytes(nonce)
        algorithm.check(key, nonce)
        self.algorithm = algorithm
        self._key = key
        self._nonce = nonce

    def __repr__(self):
        return 'CipherBuilder({!r}, {!r})'.format(self.builder, self.algorithm)

    def keystream(self):
        """Return a fresh keystream at position 0."""
        return Keystream(
            self.algorithm(self._key, self._nonce),
            self.algorithm.limit(self._nonce))

    def reader(self):
        keystream = self.keystream()
        return CipherReader(self.builder.reader(), keystream)

    def writer(self):
        keystream = self.keystream()
        return CipherWriter(self.builder.writer(), keystream)
