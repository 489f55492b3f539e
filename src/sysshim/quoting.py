"""POSIX shell quoting."""


def quote(raw: str) -> str:
    """Return *raw* as a single shell token that evaluates back to *raw*.

    The value is wrapped in single quotes; each embedded quote closes the
    quoting, adds an escaped quote, and reopens it.

    >>> quote("it's")
    "'it'\\\\''s'"
    >>> quote("")
    "''"
    """
    return "'" + raw.replace("'", "'\\''") + "'"
