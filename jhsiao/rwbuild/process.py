"""Read from stdout/write to stdin of a child process.

Two modes:

ProcessBuilder (detached)
    Every reader() spawns a new process and reads its stdout.  Every
    writer() spawns a new process and writes its stdin.  A reader and a
    writer from the same ProcessBuilder never talk to the same process,
    so this is only useful one direction at a time: read the output of
    a command, or feed input to a command.  Closing the pipe waits for
    its process to exit.

ChildBuilder (attached)
    ProcessBuilder.spawn() starts a single process with both stdin and
    stdout piped.  reader() hands out its stdout and writer() its stdin,
    each at most once: pipes cannot be duplicated, so a second request
    raises LifecycleError instead.
"""
__all__ = ['ProcessBuilder', 'ChildBuilder', 'Pipe']

import subprocess
import sys
import threading

from . import bases
from .errors import ConstructionError, LifecycleError

class Pipe(bases.Wrapper):
    """A raw pipe to or from a child process.

    proc: subprocess.Popen or None
        If given, the pipe owns the process and waits for it on close.
    """
    def __init__(self, f, proc=None, verbose=False):
        super(Pipe, self).__init__(f)
        self._r = f.readable()
        self._w = f.writable()
        self.proc = proc
        self.verbose = verbose

    @property
    def pid(self):
        return None if self.proc is None else self.proc.pid

    def readable(self):
        return self._r

    def writable(self):
        return self._w

    def readinto(self, buf):
        return self.f.readinto(buf)

    def write(self, data):
        return self.f.write(data)

    def close(self):
        if self.closed:
            return
        try:
            super(Pipe, self).close()
        finally:
            proc = self.proc
            self.proc = None
            if proc is not None:
                code = proc.wait()
                if self.verbose:
                    print(
                        'process {} exited with {}'.format(proc.pid, code),
                        file=sys.stderr)


class ProcessBuilder(bases.Builder):
    """Spawn a fresh process per reader/writer.

    A source: it wraps nothing.
    """
    def __init__(self, args, verbose=False, **kwargs):
        """Initialize a ProcessBuilder.

        args: str or sequence of str
            The command, as given to subprocess.Popen.
        verbose: bool
            Report spawned processes and their exit codes on stderr.
        kwargs:
            Extra subprocess.Popen keyword arguments (cwd, env, ...).
            stdin and stdout are managed here and not allowed.
        """
        for name in ('stdin', 'stdout'):
            if name in kwargs:
                raise ValueError(
                    '{} is managed by ProcessBuilder'.format(name))
        self.args = args
        self.verbose = verbose
        self.kwargs = kwargs

    def __repr__(self):
        return 'ProcessBuilder({!r})'.format(self.args)

    def _popen(self, **pipes):
        try:
            proc = subprocess.Popen(
                self.args, bufsize=0, **dict(self.kwargs, **pipes))
        except OSError as e:
            raise ConstructionError.wrap(
                e, 'failed to spawn {!r}'.format(self.args)) from e
        if self.verbose:
            print(
                'spawned {!r} as process {} ({})'.format(
                    self.args, proc.pid, ', '.join(sorted(pipes))),
                file=sys.stderr)
        return proc

    def reader(self):
        proc = self._popen(stdout=subprocess.PIPE)
        return Pipe(proc.stdout, proc, self.verbose)

    def writer(self):
        proc = self._popen(stdin=subprocess.PIPE)
        return Pipe(proc.stdin, proc, self.verbose)

    def spawn(self):
        """Spawn one process with stdin and stdout piped.

        Return a ChildBuilder whose reader/writer are that process's
        stdout/stdin.
        """
        proc = self._popen(stdin=subprocess.PIPE, stdout=subprocess.PIPE)
        return ChildBuilder(proc, self.verbose)


class ChildBuilder(bases.Builder):
    """Builder over one running process.

    Its stdout and stdin can each be claimed once.
    """
    def __init__(self, proc, verbose=False):
        self.proc = proc
        self.verbose = verbose
        self._lock = threading.Lock()
        self._stdout = proc.stdout
        self._stdin = proc.stdin

    def __enter__(self):
        return self

    def __exit__(self, tp, exc, tb):
        self.close()

    def __repr__(self):
        return 'ChildBuilder(pid={})'.format(self.proc.pid)

    @property
    def pid(self):
        return self.proc.pid

    @property
    def returncode(self):
        return self.proc.poll()

    def _claim(self, name):
        """Take the handle stored in name, leave None behind."""
        with self._lock:
            f = getattr(self, name)
            setattr(self, name, None)
        return f

    def reader(self):
        f = self._claim('_stdout')
        if f is None:
            raise LifecycleError(
                'No child stdout. Did you already build a reader?')
        return Pipe(f, verbose=self.verbose)

    def writer(self):
        f = self._claim('_stdin')
        if f is None:
            raise LifecycleError(
                'No child stdin. Did you already build a writer?')
        return Pipe(f, verbose=self.verbose)

    def wait(self, timeout=None):
        """Wait for the process to exit and return its exit code."""
        code = self.proc.wait(timeout)
        if self.verbose:
            print(
                'process {} exited with {}'.format(self.proc.pid, code),
                file=sys.stderr)
        return code

    def close(self):
        """Close any unclaimed pipes and wait for the process.

        Claimed pipes belong to whoever claimed them.
        """
        for name in ('_stdin', '_stdout'):
            f = self._claim(name)
            if f is not None:
                f.close()
        return self.wait()
