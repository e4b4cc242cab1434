"""
Buffered, whitespace-separated token reader.
"""
import io
import sys


class Scanner:
    """Reads one line at a time and hands out its tokens in order."""

    def __init__(self, reader=None):
        self.buffer = []
        self.reader = reader if reader is not None else sys.stdin

    @classmethod
    def from_reader(cls, reader):
        return cls(reader)

    @classmethod
    def from_string(cls, text):
        return cls(io.StringIO(text))

    def _token(self, context=""):
        while not self.buffer:
            line = self.reader.readline()
            if not line:
                raise EOFError(f"Unexpected end of input{context}")
            self.buffer = line.split()[::-1]
        return self.buffer.pop()

    def next(self, cast=str):
        """Next token converted with ``cast`` (``int``, ``float``, ``str``...)."""
        return cast(self._token())

    def dump(self, n, cast=str):
        """Read ``n`` tokens into a list."""
        result = []
        for i in range(n):
            token = self._token(f" while reading entry {i + 1} of {n}")
            try:
                result.append(cast(token))
            except ValueError as e:
                raise ValueError(
                    f"Failed to parse '{token}' as {getattr(cast, '__name__', cast)} "
                    f"at position {i + 1} of {n}: {e}"
                )
        return result
