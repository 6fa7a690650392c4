import pytest

from xvtools.openflags import OpenFlag, is_readable, is_writable


def test_create_flag_value_and_write_access():
    assert OpenFlag.CREATE == 0x200
    assert is_writable(OpenFlag.CREATE | OpenFlag.WRONLY) is True
    assert is_readable(OpenFlag.CREATE | OpenFlag.WRONLY) is False


def test_read_only_mode():
    assert is_readable(OpenFlag.RDONLY) is True
    assert is_writable(OpenFlag.RDONLY) is False


def test_write_only_mode():
    assert is_readable(OpenFlag.WRONLY) is False
    assert is_writable(OpenFlag.WRONLY) is True


def test_read_write_mode():
    assert is_readable(OpenFlag.RDWR) is True
    assert is_writable(OpenFlag.RDWR) is True


@pytest.mark.parametrize(
    "mode, readable, writable",
    [
        (0x000, True, False),
        (0x001, False, True),
        (0x002, True, True),
        (0x200, True, False),
        (0x202, True, True),
    ],
)
def test_raw_integer_modes(mode, readable, writable):
    assert is_readable(mode) is readable
    assert is_writable(mode) is writable