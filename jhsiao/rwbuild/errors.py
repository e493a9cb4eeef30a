"""Errors raised while building or using readers/writers.

Everything derives from EnvironmentError so callers that already handle
io failures also catch these.
"""
__all__ = [
    'RWBuildError',
    'ConstructionError',
    'LifecycleError',
    'TransformError',
    'ShortWriteError',
]

class RWBuildError(EnvironmentError):
    """Base class."""

class ConstructionError(RWBuildError):
    """A reader or writer could not be opened/spawned/connected.

    The underlying OSError is kept as __cause__ and its errno is copied.
    """
    @classmethod
    def wrap(cls, exc, what):
        """Make a ConstructionError describing `what` from exc."""
        msg = '{}: {}'.format(what, exc.strerror or exc)
        if exc.errno is None:
            err = cls(msg)
        else:
            err = cls(exc.errno, msg)
        return err

class LifecycleError(RWBuildError):
    """A resource that can only be taken once was taken again."""

class TransformError(RWBuildError):
    """A cipher/codec/serializer rejected the data."""

class ShortWriteError(RWBuildError):
    """A writer accepted fewer bytes than it was given."""
    def __init__(self, expected, actual):
        super(ShortWriteError, self).__init__(
            'short write: {} of {} bytes'.format(actual, expected))
        self.expected = expected
        self.actual = actual
