from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from types import MappingProxyType
from typing import Any

import structlog
from ethereum_rpc import keccak

from ._abi_types import (
    ABI_JSON,
    Type,
    dispatch_type,
    encode_normalized,
    is_encodable_normalized,
    type_to_json,
)
from ._errors import ArgumentParseError, ArityMismatch, DocumentError, MethodNotFound, TypeMismatch

logger = structlog.get_logger(__name__)

# The number of bytes in a method selector.
SELECTOR_LENGTH = 4


def base_name(name: str) -> str:
    """Returns the method name with the parameter list (if any) stripped."""
    return name.split("(", 1)[0]


@dataclass(frozen=True)
class Argument:
    """A named method parameter."""

    name: str
    """The declared name of the parameter (can be empty)."""

    type: Type
    """The type of the parameter."""

    @classmethod
    def from_json(cls, entry: ABI_JSON) -> "Argument":
        """Creates this object from a JSON ABI argument entry (``{"name": ..., "type": ...}``)."""
        if not isinstance(entry, Mapping):
            raise ArgumentParseError(
                f"Argument entry must be a mapping, got {type(entry).__name__}"
            )

        name = entry.get("name", "")
        if not isinstance(name, str):
            raise ArgumentParseError(f"Argument name must be a string, got {type(name).__name__}")
        if "type" not in entry:
            raise ArgumentParseError(f"Argument `{name}` has no `type`")

        try:
            tp = dispatch_type(entry)
        except (KeyError, TypeError, ValueError) as exc:
            raise ArgumentParseError(f"Argument `{name}`: {exc}") from exc

        return cls(name=name, type=tp)

    @classmethod
    def list_from_json(cls, entries: ABI_JSON) -> tuple["Argument", ...]:
        """
        Creates a list of arguments from a JSON ABI ``inputs`` list.
        Stops at the first invalid entry.
        """
        if not isinstance(entries, Sequence) or isinstance(entries, str | bytes):
            raise ArgumentParseError(
                f"Argument list must be a sequence, got {type(entries).__name__}"
            )
        return tuple(cls.from_json(entry) for entry in entries)

    def to_json(self) -> ABI_JSON:
        """Returns this object's JSON ABI."""
        return type_to_json(self.name, self.type)

    def __str__(self) -> str:
        return self.type.canonical_form + ((" " + self.name) if self.name else "")


class Mutability(Enum):
    """Possible states of a contract's method mutability, as reported by Solidity compilers."""

    PURE = "pure"
    """Solidity's ``pure`` (does not read or write the contract state)."""
    VIEW = "view"
    """Solidity's ``view`` (may read the contract state)."""
    NONPAYABLE = "nonpayable"
    """Solidity's ``nonpayable`` (may write the contract state)."""
    PAYABLE = "payable"
    """
    Solidity's ``payable`` (may write the contract state
    and accept associated funds with transactions).
    """

    @classmethod
    def from_json(cls, entry: ABI_JSON) -> "Mutability":
        values = dict(
            pure=Mutability.PURE,
            view=Mutability.VIEW,
            nonpayable=Mutability.NONPAYABLE,
            payable=Mutability.PAYABLE,
        )
        if not isinstance(entry, str) or entry not in values:
            raise ValueError(f"Unknown mutability identifier: {entry}")
        return values[entry]

    @property
    def constant(self) -> bool:
        return self in {Mutability.PURE, Mutability.VIEW}


def _constant_from_json(method_entry: Mapping[str, Any]) -> bool:
    for key in ("constant", "const"):
        if key in method_entry:
            constant = method_entry[key]
            if not isinstance(constant, bool):
                raise DocumentError(
                    f"`{key}` must be a boolean, got {type(constant).__name__}"
                )
            return constant

    if "stateMutability" in method_entry:
        try:
            return Mutability.from_json(method_entry["stateMutability"]).constant
        except ValueError as exc:
            raise DocumentError(str(exc)) from exc

    return False


class Method:
    """
    A contract method.

    A method is ``constant`` if calling it does not require a transaction
    (it only reads the contract state and can be simulated locally).
    """

    name: str
    """
    The name of this method as declared.
    May already contain the parameter list, e.g. ``"foo(uint256)"``.
    """

    inputs: tuple[Argument, ...]
    """The method parameters, in the encoding order."""

    constant: bool
    """Whether this method leaves the contract state unchanged."""

    return_type: None | Type
    """The declared return type. Not used for encoding."""

    @classmethod
    def from_json(cls, method_entry: ABI_JSON) -> "Method":
        """Creates this object from a JSON ABI method entry."""
        if not isinstance(method_entry, Mapping):
            raise DocumentError(
                f"Method entry must be a mapping, got {type(method_entry).__name__}"
            )

        name = method_entry.get("name", "")
        if not isinstance(name, str):
            raise DocumentError(f"Method name must be a string, got {type(name).__name__}")

        # `null` means no inputs, same as a missing key
        json_inputs = method_entry.get("inputs")
        if json_inputs is None:
            json_inputs = []

        try:
            inputs = Argument.list_from_json(json_inputs)
        except ArgumentParseError as exc:
            raise DocumentError(f"Invalid inputs of method `{name}`: {exc}") from exc

        return cls(name=name, inputs=inputs, constant=_constant_from_json(method_entry))

    def __init__(
        self,
        name: str,
        inputs: Mapping[str, Type] | Iterable[Argument] = (),
        *,
        constant: bool = False,
        return_type: None | Type = None,
    ):
        self.name = name
        if isinstance(inputs, Mapping):
            self.inputs = tuple(Argument(name=arg_name, type=tp) for arg_name, tp in inputs.items())
        else:
            self.inputs = tuple(inputs)
        self.constant = constant
        self.return_type = return_type

    @cached_property
    def base_name(self) -> str:
        """The name of this method without the parameter list."""
        return base_name(self.name)

    @cached_property
    def signature(self) -> str:
        """
        Returns the method signature, e.g. ``"foo(uint32,int256)"``
        for ``function foo(uint32 a, int b)``.

        .. note::

            If the name was declared together with a parameter list,
            it is returned verbatim, without checking it against the inputs.
        """
        if "(" in self.name and ")" in self.name:
            return self.name
        return self.name + "(" + ",".join(arg.type.canonical_form for arg in self.inputs) + ")"

    @cached_property
    def selector(self) -> bytes:
        """Method's selector."""
        return keccak(self.signature.encode())[:SELECTOR_LENGTH]

    def pack(self, *values: Any) -> bytes:
        """
        Returns the call data for this method: the selector followed by the encoded ``values``.
        Values are matched to the inputs by position.
        """
        if len(values) != len(self.inputs):
            raise ArityMismatch(self.base_name, len(self.inputs), len(values))

        normalized = []
        for index, (arg, value) in enumerate(zip(self.inputs, values, strict=True)):
            try:
                normalized_value = arg.type._normalize(value)  # noqa: SLF001
            except (TypeError, ValueError) as exc:
                raise TypeMismatch(self.base_name, index, str(exc)) from exc

            if not is_encodable_normalized(arg.type, normalized_value):
                raise TypeMismatch(
                    self.base_name,
                    index,
                    f"the value cannot be encoded as `{arg.type.canonical_form}`",
                )
            normalized.append(normalized_value)

        encoded = self.selector + encode_normalized([arg.type for arg in self.inputs], normalized)
        logger.debug(
            "method_packed",
            signature=self.signature,
            selector=self.selector.hex(),
            length=len(encoded),
        )
        return encoded

    def to_json(self) -> ABI_JSON:
        """Returns this object's JSON ABI."""
        return {
            "type": "function",
            "name": self.name,
            "constant": self.constant,
            "inputs": [arg.to_json() for arg in self.inputs],
        }

    def __str__(self) -> str:
        return self.signature

    def __repr__(self) -> str:
        args = ", ".join(str(arg) for arg in self.inputs)
        constant = " constant" if self.constant else ""
        return f"<Method {self.base_name}({args}){constant}>"


class ContractABI(Mapping[str, Method]):
    """
    A read-only collection of contract methods, indexed by their base names
    (names without the parameter list).

    Overloads are not supported: if several methods share a base name,
    only the last one is kept.
    """

    @classmethod
    def from_json(cls, json_abi: ABI_JSON) -> "ContractABI":
        """
        Creates this object from a JSON ABI: a list of method entries.
        Entries with a ``type`` other than ``function`` are ignored.
        """
        if not isinstance(json_abi, Sequence) or isinstance(json_abi, str | bytes):
            raise DocumentError(
                f"JSON ABI must be a list of entries, got {type(json_abi).__name__}"
            )

        methods = []
        for entry in json_abi:
            if isinstance(entry, Mapping) and entry.get("type", "function") != "function":
                logger.debug("abi_entry_skipped", entry_type=entry["type"])
                continue
            methods.append(Method.from_json(entry))

        return cls(methods)

    def __init__(self, methods: Iterable[Method] = ()):
        methods_dict: dict[str, Method] = {}
        for method in methods:
            previous = methods_dict.get(method.base_name)
            if previous is not None:
                logger.debug(
                    "abi_method_shadowed",
                    name=method.base_name,
                    replaced=previous.signature,
                    by=method.signature,
                )
            methods_dict[method.base_name] = method

        self._methods = MappingProxyType(methods_dict)
        logger.debug("abi_loaded", methods=len(self._methods))

    @property
    def methods(self) -> Mapping[str, Method]:
        """All the methods, indexed by their base names."""
        return self._methods

    def __getitem__(self, name: str) -> Method:
        """Returns the method with the given base name."""
        if name not in self._methods:
            raise MethodNotFound(name)
        return self._methods[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def pack(self, name: str, *values: Any) -> bytes:
        """
        Returns the call data for the method with the given base name:
        the selector followed by the encoded ``values``.
        """
        return self[name].pack(*values)

    def to_json(self) -> ABI_JSON:
        """Returns the serialized list of methods."""
        return [method.to_json() for method in self._methods.values()]

    def __str__(self) -> str:
        indent = "    "
        method_list = [indent + repr(method) for method in self._methods.values()]
        return "{\n" + "\n".join(method_list) + "\n}"


NULL_ABI = ContractABI()
"""An ABI without any methods."""
