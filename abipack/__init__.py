"""Contract ABI model and call data packing."""

from . import abi
from ._abi_types import ABI_JSON, Type, type_from_abi_string
from ._contract_abi import (
    NULL_ABI,
    SELECTOR_LENGTH,
    Argument,
    ContractABI,
    Method,
    Mutability,
)
from ._errors import (
    ABIError,
    ArgumentParseError,
    ArityMismatch,
    DocumentError,
    MethodNotFound,
    TypeMismatch,
)
from ._loader import load_abi

__all__ = [
    "ABI_JSON",
    "ABIError",
    "Argument",
    "ArgumentParseError",
    "ArityMismatch",
    "ContractABI",
    "DocumentError",
    "Method",
    "MethodNotFound",
    "Mutability",
    "NULL_ABI",
    "SELECTOR_LENGTH",
    "Type",
    "TypeMismatch",
    "abi",
    "load_abi",
    "type_from_abi_string",
]
