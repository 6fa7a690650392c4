import io

import pytest

from xvtools.cstring import (
    atoi,
    gets,
    memcmp,
    memmove,
    safestrcpy,
    strchr,
    strcmp,
    strlen,
    strncmp,
    strncpy,
)


def test_strcmp_equal_and_order():
    assert strcmp(b"abc", b"abc") == 0
    assert strcmp(b"abc", b"abd") < 0
    assert strcmp(b"abd", b"abc") > 0


def test_strcmp_prefix_returns_byte_difference():
    assert strcmp(b"ab", b"abc") == -ord("c")
    assert strcmp("abc", "ab") == ord("c")


def test_strcmp_stops_at_nul():
    assert strcmp(b"ab\0x", b"ab\0y") == 0


def test_strncmp_limits_comparison():
    assert strncmp(b"abcX", b"abcY", 3) == 0
    assert strncmp(b"abcX", b"abcY", 4) < 0
    assert strncmp(b"a", b"b", 0) == 0


def test_strncpy_pads_with_nul():
    result = strncpy(b"hi", 5)
    assert len(result) == 5
    assert result.startswith(b"hi")
    assert result[2:] == bytes(3)


def test_strncpy_truncates():
    assert strncpy(b"hello", 3) == b"hello"[:3]
    assert strncpy(b"hello", 0) == b""


def test_safestrcpy_leaves_room_for_terminator():
    assert safestrcpy(b"hello", 3) == b"hello"[:2]
    assert safestrcpy(b"hi", 10) == b"hi"
    assert safestrcpy(b"hi", 0) == b""


def test_strlen():
    assert strlen(b"abc\0def") == strlen("abc")
    assert strlen(b"") == 0


def test_strchr():
    assert strchr(b"hello", "l") == b"hello".index(b"l")
    assert strchr(b"he\0llo", "l") is None and strchr(b"hello", ord("o")) == 4
    assert strchr(b"abc", 0) is None


def test_atoi():
    assert atoi("123abc") == 123
    assert atoi(b"x12") == 0
    assert atoi("") == 0


def test_memcmp():
    assert memcmp(b"ab\0c", b"ab\0c", 4) == 0
    assert memcmp(b"ab\0c", b"ab\0d", 4) < 0
    assert memcmp(b"abc", b"abd", 2) == 0
    with pytest.raises(ValueError):
        memcmp(b"a", b"abc", 3)


def test_memmove_overlapping_forward():
    original = b"abcdef"
    buf = bytearray(original)
    result = memmove(buf, 2, 0, 4)
    assert result is buf
    assert buf[:2] == original[:2]
    assert buf[2:6] == original[0:4]


def test_memmove_overlapping_backward():
    original = b"abcdef"
    buf = bytearray(original)
    memmove(buf, 0, 2, 4)
    assert buf[0:4] == original[2:6]
    assert buf[4:] == original[4:]


def test_memmove_out_of_range():
    with pytest.raises(IndexError):
        memmove(bytearray(4), 2, 0, 3)


def test_gets_stops_after_newline():
    stream = io.BytesIO(b"line one\nline two")
    assert gets(stream, 100) == b"line one\n"
    assert gets(stream, 100) == b"line two"
    assert gets(stream, 100) == b""


def test_gets_respects_maximum():
    data = b"abcdefgh\n"
    assert gets(io.BytesIO(data), 4) == data[:3]