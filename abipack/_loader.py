import json
import os
from pathlib import Path
from typing import IO

from ._contract_abi import ContractABI
from ._errors import DocumentError


def load_abi(source: str | bytes | os.PathLike[str] | IO[str] | IO[bytes]) -> ContractABI:
    """
    Loads a contract ABI from a JSON document.

    ``source`` can be the JSON text itself (``str`` or ``bytes``),
    a path to a file (any ``os.PathLike``, e.g. ``pathlib.Path``),
    or a readable text or binary stream.
    A plain ``str`` is always treated as the JSON text, not as a path.
    """
    if isinstance(source, os.PathLike):
        text: str | bytes = Path(source).read_bytes()
    elif isinstance(source, str | bytes):
        text = source
    else:
        text = source.read()

    try:
        document = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DocumentError(f"Could not parse the JSON ABI: {exc}") from exc

    return ContractABI.from_json(document)
