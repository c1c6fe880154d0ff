"""Errors raised when building a contract ABI or packing calls against it."""


class ABIError(Exception):
    """Base class for all the errors raised by ``abipack``."""


class DocumentError(ABIError):
    """Raised when a JSON ABI document has a wrong shape or contains an invalid entry."""


class ArgumentParseError(ABIError):
    """Raised when an argument descriptor is malformed or names an unknown type."""


class MethodNotFound(ABIError, KeyError):  # noqa: N818
    """Raised when the requested method is not present in the ABI."""

    method_name: str
    """The requested base name."""

    def __init__(self, method_name: str):
        super().__init__(f"Method `{method_name}` not found")
        self.method_name = method_name

    def __str__(self) -> str:
        # `KeyError` would otherwise show the repr of the message
        return str(self.args[0])


class ArityMismatch(ABIError, TypeError):  # noqa: N818
    """Raised when the number of values does not match the number of method inputs."""

    def __init__(self, method_name: str, expected: int, got: int):
        super().__init__(f"`{method_name}` expects {expected} argument(s), got {got}")
        self.method_name = method_name
        self.expected = expected
        self.got = got


class TypeMismatch(ABIError):  # noqa: N818
    """Raised when a value cannot be packed as the type of the corresponding method input."""

    method_name: str
    """The name of the method being packed."""

    index: int
    """The position of the offending argument."""

    def __init__(self, method_name: str, index: int, reason: str):
        super().__init__(f"`{method_name}` argument {index}: {reason}")
        self.method_name = method_name
        self.index = index
        self.reason = reason
