"""Exception types raised by the planning engine."""


class InvalidInputError(ValueError):
    """Raised when caller-supplied input is outside the supported domain."""

    pass


class AdvisoryUnavailableError(RuntimeError):
    """
    Raised when the advisory capability cannot produce a usable adjustment.

    Covers timeouts, transport errors, malformed or out-of-bound responses,
    and a missing client.  Never escapes AdvisoryStrategy.generate().
    """

    pass
