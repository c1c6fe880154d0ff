# The aliases shadow builtins on purpose.
# ruff: noqa: A001

"""
Shorthands for building parameter types by hand,
e.g. ``abi.uint(32)[...]`` for ``uint32[]`` or ``abi.struct(a=abi.bool)`` for ``(bool)``.
"""

from ._abi_types import AddressType, Bool, Bytes, Int, String, Struct, Type, UInt

_PyInt = int


def uint(bits: _PyInt = 256) -> UInt:
    """An unsigned integer parameter of ``bits`` width (``uint`` means ``uint256``)."""
    return UInt(bits)


def int(bits: _PyInt = 256) -> Int:
    """A signed integer parameter of ``bits`` width (``int`` means ``int256``)."""
    return Int(bits)


def bytes(size: None | _PyInt = None) -> Bytes:
    """
    A byte string parameter: ``bytes1`` to ``bytes32`` when ``size`` is given,
    otherwise the dynamic ``bytes``.
    """
    return Bytes(size)


def struct(**kwargs: Type) -> Struct:
    """
    A tuple parameter. Keyword order fixes the field order,
    so ``struct(a=..., b=...)`` and ``struct(b=..., a=...)`` pack differently.
    """
    return Struct(kwargs)


address: AddressType = AddressType()
"""A 20-byte account address, packed left-padded."""

string: String = String()
"""A dynamic UTF-8 string."""

bool: Bool = Bool()
"""A boolean, packed as ``0`` or ``1``."""
