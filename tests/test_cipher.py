import numpy as np
import pytest
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms
from Crypto.Cipher import Salsa20

from jhsiao.rwbuild import bases, cipher, errors, shared

KEY = b'\x42' * 32
NONCE = b'\x24' * 12

def randbytes(n, seed=0):
    return np.random.RandomState(seed).randint(
        0, 256, n, dtype=np.uint8).tobytes()

def test_string():
    text = 'This text is written from a String and read back into a String.'
    s = shared.SharedBuilder().chacha20(KEY, NONCE).string()
    s.write_string(text)
    assert str(s) == text

def test_keystream_matches_chacha20():
    data = randbytes(1000)
    src = shared.SharedBuilder()
    with src.chacha20(KEY, NONCE).writer() as w:
        assert w.write(data[:1]) == 1
        assert w.write(data[1:]) == 999
    expected = Cipher(
        algorithms.ChaCha20(KEY, b'\x00' * 4 + NONCE), mode=None
    ).encryptor().update(data)
    assert src.getvalue() == expected
    assert src.getvalue() != data

def test_partial_reads():
    data = randbytes(20000)
    rng = np.random.RandomState(1)
    b = shared.SharedBuilder().chacha20(KEY, NONCE)
    with b.writer() as w:
        pos = 0
        while pos < len(data):
            step = int(rng.randint(1, 3000))
            w.write(data[pos:pos+step])
            pos += step
    r = b.reader()
    parts = []
    while True:
        buf = bytearray(int(rng.randint(1, 5000)))
        amt = r.readinto(buf)
        if not amt:
            break
        parts.append(bytes(buf[:amt]))
    assert b''.join(parts) == data

def test_zero_length():
    src = shared.SharedBuilder()
    b = src.chacha20(KEY, NONCE)
    w = b.writer()
    assert w.write(b'') == 0
    assert src.getvalue() == b''
    assert b.reader().read() == b''
    w.write(b'after')
    assert b.reader().read() == b'after'

def test_caller_buffer_unmodified():
    data = bytearray(b'secret message')
    b = shared.SharedBuilder().chacha20(KEY, NONCE)
    b.writer().write(data)
    assert data == b'secret message'

def test_reader_transforms_only_read_bytes():
    src = shared.SharedBuilder()
    b = src.chacha20(KEY, NONCE)
    w = b.writer()
    w.write(b'hello')
    r = b.reader()
    buf = bytearray(b'\xff' * 16)
    assert r.readinto(buf) == 5
    assert buf[:5] == b'hello'
    assert buf[5:] == b'\xff' * 11
    # keystream stays aligned for the next read
    w.write(b' world')
    assert r.read() == b' world'

def test_fresh_state_per_stream():
    b = shared.SharedBuilder().chacha20(KEY, NONCE)
    b.writer().write(b'first')
    b.writer().write(b'first')
    # each writer starts at keystream position 0, so only one reader
    # position lines up with the second writer's bytes
    data = b.reader().read()
    assert data[:5] == b'first'
    assert data[5:] != b'first'
    r1 = b.reader()
    r2 = b.reader()
    assert r1.read(5) == b'first'
    assert r2.read(5) == b'first'

def test_aes_ctr():
    key = b'\x01' * 16
    nonce = b'\x02' * 16
    src = shared.SharedBuilder()
    s = src.aes_ctr(key, nonce).string()
    s.write_string('counter mode')
    assert s.read_string() == 'counter mode'
    assert src.getvalue() != b'counter mode'

def test_bad_sizes():
    calls = []

    class Source(bases.Builder):
        def reader(self):
            calls.append('r')
        def writer(self):
            calls.append('w')

    with pytest.raises(ValueError):
        Source().chacha20(b'short', NONCE)
    with pytest.raises(ValueError):
        Source().chacha20(KEY, b'\x00' * 8)
    with pytest.raises(ValueError):
        Source().aes_ctr(b'\x00' * 20, b'\x00' * 16)
    assert not calls

def test_exhaustion():
    # block counter starts at the last block: 64 bytes of keystream left
    nonce = b'\xff\xff\xff\xff' + NONCE
    b = cipher.CipherBuilder(
        shared.SharedBuilder(), KEY, nonce, cipher.ChaCha20())
    w = b.writer()
    assert w.write(b'\x00' * 64) == 64
    with pytest.raises(errors.TransformError):
        w.write(b'\x00')

def test_context_failure():
    class Broken(object):
        def update(self, data):
            raise ValueError('bad state')

    ks = cipher.Keystream(Broken())
    with pytest.raises(errors.TransformError):
        ks.apply(memoryview(bytearray(4)))
    assert ks.pos == 0

def test_salsa20():
    text = 'This text is written from a String and read back into a String.'
    src = shared.SharedBuilder()
    s = src.salsa20(KEY, b'\x24' * 8).string()
    s.write_string(text)
    assert str(s) == text
    assert src.getvalue() != text.encode('utf-8')

def test_salsa20_matches_pycryptodome():
    data = randbytes(3000, 5)
    src = shared.SharedBuilder()
    with src.salsa20(KEY, b'\x24' * 8).writer() as w:
        w.write(data[:100])
        w.write(data[100:])
    expected = Salsa20.new(key=KEY, nonce=b'\x24' * 8).encrypt(data)
    assert src.getvalue() == expected
    with pytest.raises(ValueError):
        src.salsa20(KEY, NONCE)

def test_reader_exhaustion():
    nonce = b'\xff\xff\xff\xff' + NONCE
    b = cipher.CipherBuilder(
        shared.SharedBuilder(b'\x00' * 100), KEY, nonce, cipher.ChaCha20())
    r = b.reader()
    assert len(r.read(64)) == 64
    with pytest.raises(errors.TransformError):
        r.read(36)
