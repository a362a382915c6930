import pytest

from filterspec._serialization import DecodeError, decode_json, encode_json


def test_encode_json():
    assert encode_json({"a": [1, 2]}) == '{"a":[1,2]}'
    assert encode_json({"a": 1}, as_bytes=True) == b'{"a":1}'


def test_decode_json():
    assert decode_json('{"score_gte": 50.0}') == {"score_gte": 50.0}
    assert decode_json(b"[0, 24]") == [0, 24]


def test_decode_json_invalid():
    with pytest.raises(DecodeError):
        decode_json("{not json")
