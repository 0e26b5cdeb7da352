"""Error classes raised while adapting JAM orders for Bebop.

Every error aborts the build; no partial call list is ever returned.
"""


class AdapterError(Exception):
    """Base error for order adaptation."""

    pass


class InvariantViolation(AdapterError):
    """Malformed input: mismatched token/amount lengths, bad addresses, overflow.

    A caller error. Not retried.
    """

    pass


class SigningFailure(AdapterError):
    """The signing capability rejected the order or was unavailable."""

    pass


class UnsupportedToken(AdapterError):
    """The native-asset substitution target could not be resolved."""

    pass
