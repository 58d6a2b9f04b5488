"""Errors raised by the EMI calculator."""


class InvalidArgument(ValueError):
    """Raised when a caller passes a value the calculator cannot accept.

    ``field`` names the offending argument and ``reason`` describes the
    violated rule, e.g. ``InvalidArgument("principal", "must not be
    negative")`` renders as ``"principal must not be negative"``.
    """

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{field} {reason}")
