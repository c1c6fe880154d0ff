import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from functools import cached_property
from types import MappingProxyType
from typing import Any

from eth_abi import encode, is_encodable
from ethereum_rpc import Address

ABI_JSON = None | bool | int | float | str | Sequence["ABI_JSON"] | Mapping[str, "ABI_JSON"]
"""Values serializable to JSON."""


class Type(ABC):
    """The base type for contract ABI types."""

    @property
    @abstractmethod
    def canonical_form(self) -> str:
        """
        Returns the type as a string in the canonical form
        (the one used in method signatures and for ``eth_abi`` consumption).
        """
        ...

    @abstractmethod
    def _normalize(self, val: Any) -> Any:
        """
        Checks and possibly normalizes the value making it ready to be passed
        to ``encode()`` for encoding.
        """
        ...

    def encode(self, val: Any) -> bytes:
        """Encodes the given value in the contract ABI format as a standalone block."""
        return encode([self.canonical_form], [self._normalize(val)])

    def __str__(self) -> str:
        return self.canonical_form

    def __hash__(self) -> int:
        return hash(self.canonical_form)

    def __getitem__(self, array_size: int | Any) -> "Array":
        # In Py3.10 they added EllipsisType which would work better here.
        # For now, relying on the documentation.
        if isinstance(array_size, int):
            return Array(self, array_size)
        if array_size == ...:
            return Array(self, None)
        raise TypeError(f"Invalid array size specifier type: {type(array_size).__name__}")


class UInt(Type):
    """Corresponds to the ``uint<bits>`` type."""

    def __init__(self, bits: int):
        if bits <= 0 or bits > 256 or bits % 8 != 0:  # noqa: PLR2004
            raise ValueError(f"Incorrect `uint` bit size: {bits}")
        self._bits = bits

    @property
    def canonical_form(self) -> str:
        return f"uint{self._bits}"

    def _normalize(self, val: Any) -> int:
        # `bool` is a subclass of `int`, but we would rather be more strict
        # and prevent possible bugs.
        if not isinstance(val, int) or isinstance(val, bool):
            raise TypeError(
                f"`{self.canonical_form}` must correspond to an integer, got {type(val).__name__}"
            )
        if val < 0:
            raise ValueError(
                f"`{self.canonical_form}` must correspond to a non-negative integer, got {val}"
            )
        if val >> self._bits != 0:
            raise ValueError(
                f"`{self.canonical_form}` must correspond to an unsigned integer "
                f"under {self._bits} bits, got {val}"
            )
        return int(val)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, UInt) and self._bits == other._bits

    __hash__ = Type.__hash__


class Int(Type):
    """Corresponds to the ``int<bits>`` type."""

    def __init__(self, bits: int):
        if bits <= 0 or bits > 256 or bits % 8 != 0:  # noqa: PLR2004
            raise ValueError(f"Incorrect `int` bit size: {bits}")
        self._bits = bits

    @property
    def canonical_form(self) -> str:
        return f"int{self._bits}"

    def _normalize(self, val: Any) -> int:
        if not isinstance(val, int) or isinstance(val, bool):
            raise TypeError(
                f"`{self.canonical_form}` must correspond to an integer, got {type(val).__name__}"
            )
        if (val + (1 << (self._bits - 1))) >> self._bits != 0:
            raise ValueError(
                f"`{self.canonical_form}` must correspond to a signed integer "
                f"under {self._bits} bits, got {val}"
            )
        return int(val)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Int) and self._bits == other._bits

    __hash__ = Type.__hash__


class Bytes(Type):
    """Corresponds to the ``bytes<size>`` type, or to dynamic ``bytes`` if ``size`` is ``None``."""

    def __init__(self, size: None | int = None):
        if size is not None and (size <= 0 or size > 32):  # noqa: PLR2004
            raise ValueError(f"Incorrect `bytes` size: {size}")
        self._size = size

    @property
    def canonical_form(self) -> str:
        return f"bytes{self._size if self._size else ''}"

    def _normalize(self, val: Any) -> bytes:
        if not isinstance(val, bytes):
            raise TypeError(
                f"`{self.canonical_form}` must correspond to a bytestring, "
                f"got {type(val).__name__}"
            )
        if self._size is not None and len(val) != self._size:
            raise ValueError(f"Expected {self._size} bytes, got {len(val)}")
        return val

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Bytes) and self._size == other._size

    __hash__ = Type.__hash__


class AddressType(Type):
    """
    Corresponds to the ``address`` type.
    Not to be confused with ``ethereum_rpc.Address`` which represents an address value.
    """

    @property
    def canonical_form(self) -> str:
        return "address"

    def _normalize(self, val: Any) -> bytes:
        if not isinstance(val, Address):
            raise TypeError(
                f"`address` must correspond to an `Address`-type value, "
                f"got {type(val).__name__}"
            )
        return bytes(val)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, AddressType)

    __hash__ = Type.__hash__


class String(Type):
    """Corresponds to the ``string`` type."""

    @property
    def canonical_form(self) -> str:
        return "string"

    def _normalize(self, val: Any) -> str:
        if not isinstance(val, str):
            raise TypeError(
                f"`string` must correspond to a `str`-type value, got {type(val).__name__}"
            )
        # Lone surrogates pass `isinstance`, but fail in the encoder.
        try:
            val.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ValueError(f"`string` must be encodable as UTF-8: {exc.reason}") from exc
        return val

    def __eq__(self, other: object) -> bool:
        return isinstance(other, String)

    __hash__ = Type.__hash__


class Bool(Type):
    """Corresponds to the ``bool`` type."""

    @property
    def canonical_form(self) -> str:
        return "bool"

    def _normalize(self, val: Any) -> bool:
        if not isinstance(val, bool):
            raise TypeError(
                f"`bool` must correspond to a `bool`-type value, got {type(val).__name__}"
            )
        return val

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Bool)

    __hash__ = Type.__hash__


class Array(Type):
    """Corresponds to the array (``[<size>]``) type, or a dynamic array if ``size`` is ``None``."""

    def __init__(self, element_type: Type, size: None | int = None):
        if size is not None and size <= 0:
            raise ValueError(f"Incorrect array size: {size}")
        self._element_type = element_type
        self._size = size

    @property
    def element_type(self) -> Type:
        """The type of the array elements."""
        return self._element_type

    @property
    def size(self) -> None | int:
        """The array size, or ``None`` for a dynamic array."""
        return self._size

    @cached_property
    def canonical_form(self) -> str:
        return (
            self._element_type.canonical_form + "[" + (str(self._size) if self._size else "") + "]"
        )

    def _normalize(self, val: Any) -> list[Any]:
        # Strings and bytestrings are iterable, but are never meant as arrays.
        if not isinstance(val, Iterable) or isinstance(val, str | bytes):
            raise TypeError(f"Expected an iterable, got {type(val).__name__}")
        items = list(val)
        if self._size is not None and len(items) != self._size:
            raise ValueError(f"Expected {self._size} elements, got {len(items)}")
        return [self._element_type._normalize(item) for item in items]  # noqa: SLF001

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Array)
            and self._element_type == other._element_type
            and self._size == other._size
        )

    __hash__ = Type.__hash__


class Struct(Type):
    """Corresponds to the struct (tuple) type."""

    def __init__(self, fields: Mapping[str, Type]):
        self._fields = dict(fields)

    @property
    def fields(self) -> Mapping[str, Type]:
        """Struct fields in the declaration order."""
        return MappingProxyType(self._fields)

    @cached_property
    def canonical_form(self) -> str:
        return "(" + ",".join(field.canonical_form for field in self._fields.values()) + ")"

    def _normalize(self, val: Any) -> list[Any]:
        if isinstance(val, Mapping):
            if val.keys() != self._fields.keys():
                raise ValueError(
                    f"Expected fields {list(self._fields.keys())}, got {list(val.keys())}"
                )
            return [tp._normalize(val[name]) for name, tp in self._fields.items()]  # noqa: SLF001

        if not isinstance(val, Iterable) or isinstance(val, str | bytes):
            raise TypeError(f"Expected an iterable, got {type(val).__name__}")
        items = list(val)
        if len(items) != len(self._fields):
            raise ValueError(f"Expected {len(self._fields)} elements, got {len(items)}")
        return [
            tp._normalize(item)  # noqa: SLF001
            for item, tp in zip(items, self._fields.values(), strict=True)
        ]

    def __str__(self) -> str:
        # Overriding the `Type`'s implementation because we want to show the field names too
        return "(" + ", ".join(str(tp) + " " + str(name) for name, tp in self._fields.items()) + ")"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Struct)
            and self._fields == other._fields
            # structs with the same fields but in different order are not equal
            and list(self._fields) == list(other._fields)
        )

    __hash__ = Type.__hash__


_UINT_RE = re.compile(r"uint(\d+)")
_INT_RE = re.compile(r"int(\d+)")
_BYTES_RE = re.compile(r"bytes(\d+)?")

_NO_PARAMS: dict[str, Type] = {
    "address": AddressType(),
    "string": String(),
    "bool": Bool(),
}

# Shorthand names and their canonical counterparts.
_SYNONYMS = {
    "uint": "uint256",
    "int": "int256",
    "byte": "bytes1",
}


def type_from_abi_string(abi_string: str) -> Type:
    """Parses the name of a non-array, non-tuple type."""
    abi_string = _SYNONYMS.get(abi_string, abi_string)
    if match := _UINT_RE.fullmatch(abi_string):
        return UInt(int(match.group(1)))
    if match := _INT_RE.fullmatch(abi_string):
        return Int(int(match.group(1)))
    if match := _BYTES_RE.fullmatch(abi_string):
        size = match.group(1)
        return Bytes(int(size) if size else None)
    if abi_string in _NO_PARAMS:
        return _NO_PARAMS[abi_string]
    raise ValueError(f"Unknown type: {abi_string}")


def dispatch_type(abi_entry: Mapping[str, Any]) -> Type:
    """
    Parses the type of a JSON ABI argument entry,
    recursing into array elements and tuple ``components``.
    """
    type_str = abi_entry["type"]
    if not isinstance(type_str, str):
        raise TypeError(f"Type name must be a string, got {type(type_str).__name__}")

    match = re.match(r"^([\w\d\[\]]*?)(\[(\d+)?\])?$", type_str)
    if not match:
        raise ValueError(f"Incorrect type format: {type_str}")

    element_type_name = match.group(1)
    is_array = match.group(2)
    array_size = match.group(3)

    if is_array:
        element_entry = dict(abi_entry)
        element_entry["type"] = element_type_name
        element_type = dispatch_type(element_entry)
        return Array(element_type, int(array_size) if array_size is not None else None)
    if element_type_name == "tuple":
        if "components" not in abi_entry:
            raise ValueError("A `tuple` type must have `components`")
        return Struct(dispatch_types(abi_entry["components"]))
    return type_from_abi_string(element_type_name)


def dispatch_types(abi_entry: Iterable[Mapping[str, Any]]) -> dict[str, Type]:
    # Since we are returning a dictionary, need to be sure we don't silently merge entries
    entries = list(abi_entry)
    names = [entry["name"] for entry in entries]
    if len(names) != len(set(names)):
        raise ValueError("All ABI entries must have distinct names")
    return {entry["name"]: dispatch_type(entry) for entry in entries}


def type_to_json(name: str, tp: Type) -> dict[str, ABI_JSON]:
    """
    Returns the JSON ABI argument entry for the given type,
    the inverse of :py:func:`dispatch_type`.
    """
    # Array suffixes are written innermost-first: `uint8[2][]` is a dynamic array of `uint8[2]`.
    suffix = ""
    element_type = tp
    while isinstance(element_type, Array):
        suffix = "[" + (str(element_type.size) if element_type.size else "") + "]" + suffix
        element_type = element_type.element_type

    if isinstance(element_type, Struct):
        return {
            "name": name,
            "type": "tuple" + suffix,
            "components": [
                type_to_json(field_name, field_type)
                for field_name, field_type in element_type.fields.items()
            ],
        }
    return {"name": name, "type": element_type.canonical_form + suffix}


def is_encodable_normalized(tp: Type, val: Any) -> bool:
    """Checks that the encoder backend accepts an already normalized value."""
    return is_encodable(tp.canonical_form, val)


def encode_normalized(types: Sequence[Type], values: Sequence[Any]) -> bytes:
    """Encodes already normalized values as a single ABI tuple."""
    return encode([tp.canonical_form for tp in types], list(values))

