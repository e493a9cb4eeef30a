import io
import threading

import numpy as np

from jhsiao.rwbuild import shared

def test_visibility():
    b = shared.SharedBuilder()
    w = b.writer()
    assert w.write(b'hello ') == 6
    assert w.write(bytearray(b'world')) == 5
    r = b.reader()
    assert r.read() == b'hello world'
    assert r.read(10) == b''

    # 0 is not final, the buffer can grow later
    assert w.write(b'!') == 1
    assert r.read() == b'!'
    assert b.getvalue() == b'hello world!'

def test_partial_reads():
    b = shared.SharedBuilder(b'0123456789')
    r = b.reader()
    buf = bytearray(4)
    assert r.readinto(buf) == 4
    assert buf == b'0123'
    assert r.readinto(buf) == 4
    assert buf == b'4567'
    assert r.readinto(buf) == 2
    assert buf[:2] == b'89'
    assert r.readinto(buf) == 0
    assert r.tell() == 10

def test_independent_readers():
    b = shared.SharedBuilder()
    with b.writer() as w:
        w.write(b'abcdef')
    r1 = b.reader()
    r2 = b.reader()
    assert r1.read(3) == b'abc'
    assert r2.read() == b'abcdef'
    assert r1.read() == b'def'

def test_writers_append():
    b = shared.SharedBuilder()
    w1 = b.writer()
    w2 = b.writer()
    w1.write(b'one ')
    w2.write(b'two ')
    w1.write(b'three')
    assert b.reader().read() == b'one two three'

def test_close():
    b = shared.SharedBuilder()
    w = b.writer()
    w.write(b'data')
    w.close()
    w.close()
    try:
        w.write(b'more')
    except ValueError:
        pass
    else:
        assert False, 'write after close should fail'
    r = b.reader()
    r.close()
    # closing handles never closes the shared buffer
    assert b.reader().read() == b'data'
    b.writer().write(b'!')
    assert b.getvalue() == b'data!'

def test_threads():
    data = np.random.RandomState(0).randint(
        0, 256, 1 << 18, dtype=np.uint8).tobytes()
    b = shared.SharedBuilder()
    out = []

    def write():
        with b.writer() as w:
            for start in range(0, len(data), 1000):
                w.write(data[start:start+1000])

    def read():
        r = b.reader()
        buf = bytearray(777)
        total = 0
        while total < len(data):
            amt = r.readinto(buf)
            out.append(bytes(buf[:amt]))
            total += amt

    threads = [threading.Thread(target=read), threading.Thread(target=write)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(30)
    assert not any(t.is_alive() for t in threads)
    assert b''.join(out) == data

def test_fileno():
    b = shared.SharedBuilder()
    for f in (b.reader(), b.writer()):
        try:
            f.fileno()
        except io.UnsupportedOperation:
            pass
        else:
            assert False, 'shared handles have no file descriptor'
