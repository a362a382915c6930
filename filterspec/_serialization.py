"""JSON encoding and decoding for wire-level request parameters."""

from typing import Any, Literal, Union, overload

import msgspec

__all__ = ("DecodeError", "EncodeError", "decode_json", "encode_json")

DecodeError = msgspec.DecodeError
EncodeError = msgspec.EncodeError

_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder()


@overload
def encode_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def encode_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def encode_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode data to JSON.

    Args:
        data: Data to encode.
        as_bytes: Return the raw bytes instead of a decoded string.

    Returns:
        JSON string or bytes.
    """
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: Union[str, bytes]) -> Any:
    """Decode JSON text into Python objects.

    Args:
        data: JSON string or bytes.

    Raises:
        DecodeError: If ``data`` is not valid JSON.

    Returns:
        The decoded value.
    """
    return _decoder.decode(data)
