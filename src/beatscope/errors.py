"""Exception hierarchy shared by the analysis engine and its decoders."""


class BeatscopeError(Exception):
    """Base class for every error raised by beatscope."""


class InputError(BeatscopeError, ValueError):
    """Missing or unreadable audio source, or invalid analysis parameters."""


class DecodeError(BeatscopeError):
    """The external decode/transcode step failed.

    The decoder's own diagnostic output is carried verbatim in the message.
    """


class ComputationError(BeatscopeError):
    """An internal invariant was violated. Indicates a programming error."""
