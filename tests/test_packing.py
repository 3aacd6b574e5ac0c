import pytest

from styler.errors import DecodeError, EncodeError
from styler.packing import (
    numbers_to_token,
    pack,
    token_to_numbers,
    unpack,
    urlsafe_decode,
    urlsafe_encode,
)


@pytest.mark.parametrize("n,size", [
    (0, 1),
    (1, 1),
    (127, 1),
    (128, 2),
    (129, 2),
    (300, 2),
    (16383, 2),
    (16384, 3),
    (16385, 3),
    (1_000_000, 3),
    (2097151, 3),
])
def test_round_trip_at_length_boundaries(n, size):
    packed = pack([n])
    assert len(packed) == size
    assert unpack(packed) == [n]


def test_most_significant_chunk_first():
    assert pack([128]) == bytes([0x81, 0x00])
    assert pack([300]) == bytes([0x82, 0x2C])
    assert pack([16384]) == bytes([0x81, 0x80, 0x00])
    assert pack([2097151]) == bytes([0xFF, 0xFF, 0x7F])
    assert unpack(bytes([0x82, 0x2C])) == [300]
    assert unpack(bytes([0x81, 0x80, 0x00])) == [16384]


def test_mixed_sequence():
    nums = [0, 127, 128, 16383, 16384, 2097151, 65, 256, 5000]
    assert unpack(pack(nums)) == nums


@pytest.mark.parametrize("n", [-1, 2097152, 10 ** 9])
def test_out_of_range_is_rejected(n):
    with pytest.raises(EncodeError):
        pack([n])


def test_truncated_integer_is_rejected():
    with pytest.raises(DecodeError):
        unpack(bytes([0x81]))


def test_overlong_integer_is_rejected():
    with pytest.raises(DecodeError):
        unpack(bytes([0x81, 0x81, 0x81, 0x01]))


def test_urlsafe_alphabet_and_no_padding():
    assert urlsafe_encode(b"\xfb\xff") == "-_8"
    assert urlsafe_decode("-_8") == b"\xfb\xff"
    token = urlsafe_encode(bytes(range(256)))
    assert not set(token) & set("+/=")


@pytest.mark.parametrize("bad", ["a", "ab!c", "é"])
def test_invalid_base64_is_rejected(bad):
    with pytest.raises(DecodeError):
        urlsafe_decode(bad)


def test_token_round_trip():
    nums = [123, 34, 99, 34, 58, 256, 300, 16500]
    assert token_to_numbers(numbers_to_token(nums)) == nums
