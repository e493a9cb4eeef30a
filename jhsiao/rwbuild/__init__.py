"""Build readers and writers by chaining transformations.

Start from a source (SharedBuilder, FileBuilder, ProcessBuilder,
TcpBuilder), chain transforms, then use reader()/writer() directly or
finish with a sink:

    b = SharedBuilder().zlib(Compression.fast()).chacha20(key, nonce)
    s = b.string()
    s.write_string('hello')
    assert str(s) == 'hello'

Since readers and writers come from the same builder, whatever a writer
writes, a reader of the same builder reads back.
"""
from .bases import Builder, Transform, Sink, Wrapper, write_all
from .cipher import AesCtr, ChaCha20, CipherBuilder, Salsa20
from .coders import CoderBuilder, Compression
from .errors import (
    RWBuildError,
    ConstructionError,
    LifecycleError,
    TransformError,
    ShortWriteError,
)
from .file import FileBuilder
from .process import ChildBuilder, ProcessBuilder
from .shared import SharedBuilder
from .sinks import PickleSink, StringSink
from .sockets import TcpBuilder
