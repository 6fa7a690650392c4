import struct

import pytest

from xvtools.fs import DIRENT_SIZE, DIRSIZ, FileSystem, FileType, FsError
from xvtools.mmu import NOFILE
from xvtools.openflags import OpenFlag

RW_CREATE = OpenFlag.CREATE | OpenFlag.RDWR


@pytest.fixture
def fs():
    return FileSystem()


def make_file(fs, path, data):
    fd = fs.open(path, RW_CREATE)
    fs.write(fd, data)
    fs.close(fd)


def read_all(fs, path):
    fd = fs.open(path)
    data = fs.read(fd, 100000)
    fs.close(fd)
    return data


def test_write_then_read_back(fs):
    payload = b"aaaaaaaaaabbbbbbbbbb" * 100
    fd = fs.open("small", RW_CREATE)
    assert fs.write(fd, payload) == len(payload)
    fs.close(fd)
    assert read_all(fs, "small") == payload


def test_open_missing_file_fails(fs):
    with pytest.raises(FsError):
        fs.open("doesnotexist")


def test_read_respects_offset_and_end(fs):
    make_file(fs, "f", b"hello")
    fd = fs.open("f")
    assert fs.read(fd, 2) == b"he"
    assert fs.read(fd, 10) == b"llo"
    assert fs.read(fd, 10) == b""


def test_dup_shares_offset(fs):
    make_file(fs, "f", b"abcdef")
    fd = fs.open("f")
    other = fs.dup(fd)
    assert other != fd
    assert fs.read(fd, 3) == b"abc"
    assert fs.read(other, 3) == b"def"


def test_shared_descriptor_writes_append(fs):
    fd = fs.open("sharedfd", RW_CREATE)
    other = fs.dup(fd)
    for _ in range(10):
        fs.write(fd, b"c" * 10)
        fs.write(other, b"p" * 10)
    assert fs.fstat(fd).size == 200
    data = read_all(fs, "sharedfd")
    assert data.count(b"c") == 100 and data.count(b"p") == 100


def test_lowest_descriptor_reused(fs):
    make_file(fs, "f", b"x")
    first = fs.open("f")
    second = fs.open("f")
    fs.close(first)
    assert fs.open("f") == first
    assert second != first


def test_descriptor_table_limit(fs):
    make_file(fs, "f", b"x")
    fds = [fs.open("f") for _ in range(NOFILE)]
    assert len(set(fds)) == NOFILE
    with pytest.raises(FsError):
        fs.open("f")


@pytest.mark.parametrize("fd", [-1, NOFILE, 3])
def test_bad_descriptor(fs, fd):
    with pytest.raises(FsError):
        fs.close(fd)


def test_access_modes_are_enforced(fs):
    make_file(fs, "f", b"data")
    ro = fs.open("f", OpenFlag.RDONLY)
    wo = fs.open("f", OpenFlag.WRONLY)
    with pytest.raises(FsError):
        fs.write(ro, b"x")
    with pytest.raises(FsError):
        fs.read(wo, 1)


def test_negative_read_length(fs):
    make_file(fs, "f", b"data")
    fd = fs.open("f")
    with pytest.raises(FsError):
        fs.read(fd, -1)


def test_directory_cannot_be_opened_for_writing(fs):
    fs.mkdir("dd")
    for mode in (OpenFlag.RDWR, OpenFlag.WRONLY, OpenFlag.CREATE):
        with pytest.raises(FsError):
            fs.open("dd", mode)
    fd = fs.open("dd", OpenFlag.RDONLY)
    assert fs.fstat(fd).type == FileType.DIR
    with pytest.raises(FsError):
        fs.write(fd, b"x")


def test_directory_read_yields_dirents(fs):
    fs.mkdir("d")
    fd = fs.open("d")
    ino = fs.fstat(fd).ino
    data = fs.read(fd, 1000)
    assert len(data) % DIRENT_SIZE == 0
    inum, name = struct.unpack("<H14s", data[:DIRENT_SIZE])
    assert inum == ino
    assert name.rstrip(b"\0") == b"."


def test_link_shares_content_and_counts(fs):
    make_file(fs, "lf1", b"hello")
    fd = fs.open("lf1")
    before = fs.fstat(fd).nlink
    fs.link("lf1", "lf2")
    assert fs.fstat(fd).nlink == before + 1
    fs.unlink("lf1")
    with pytest.raises(FsError):
        fs.open("lf1")
    assert read_all(fs, "lf2") == b"hello"


def test_link_to_existing_name_fails_and_restores_count(fs):
    make_file(fs, "lf2", b"hello")
    fd = fs.open("lf2")
    before = fs.fstat(fd).nlink
    with pytest.raises(FsError):
        fs.link("lf2", "lf2")
    assert fs.fstat(fd).nlink == before


def test_link_errors(fs):
    with pytest.raises(FsError):
        fs.link("missing", "x")
    with pytest.raises(FsError):
        fs.link(".", "lf1")


def test_unlinked_open_file_still_readable(fs):
    make_file(fs, "unlinkread", b"hello")
    fd = fs.open("unlinkread", OpenFlag.RDWR)
    fs.unlink("unlinkread")
    make_file(fs, "unlinkread", b"yyy")
    assert fs.read(fd, 100) == b"hello"
    assert fs.write(fd, b"0123456789") == 10
    assert read_all(fs, "unlinkread") == b"yyy"


def test_unlink_dots_fail(fs):
    fs.mkdir("dots")
    fs.chdir("dots")
    for name in (".", ".."):
        with pytest.raises(FsError):
            fs.unlink(name)
    fs.chdir("/")
    for name in ("dots/.", "dots/.."):
        with pytest.raises(FsError):
            fs.unlink(name)
    fs.unlink("dots")
    with pytest.raises(FsError):
        fs.chdir("dots")


def test_nonempty_directory_cannot_be_removed(fs):
    fs.mkdir("dd")
    make_file(fs, "dd/ff", b"ff")
    with pytest.raises(FsError):
        fs.unlink("dd")
    fs.unlink("dd/ff")
    fs.unlink("dd")
    with pytest.raises(FsError):
        fs.open("dd")


def test_mkdir_counts_parent_links(fs):
    fs.mkdir("p")
    fd = fs.open("p")
    before = fs.fstat(fd).nlink
    fs.mkdir("p/child")
    assert fs.fstat(fd).nlink == before + 1
    fs.unlink("p/child")
    assert fs.fstat(fd).nlink == before


def test_dotdot_paths(fs):
    fs.mkdir("dd")
    make_file(fs, "dd/ff", b"ff")
    fs.mkdir("/dd/dd")
    make_file(fs, "dd/dd/ff", b"FF")
    assert read_all(fs, "dd/dd/../ff") == b"ff"
    fs.chdir("dd")
    fs.chdir("dd/../../dd")
    fs.chdir("dd/../../../dd")
    fs.chdir("./..")
    assert read_all(fs, "dd/dd/ff") == b"FF"


def test_paths_through_files_fail(fs):
    make_file(fs, "dirfile", b"")
    with pytest.raises(FsError):
        fs.chdir("dirfile")
    with pytest.raises(FsError):
        fs.open("dirfile/xx")
    with pytest.raises(FsError):
        fs.open("dirfile/xx", OpenFlag.CREATE)
    with pytest.raises(FsError):
        fs.mkdir("dirfile/xx")
    with pytest.raises(FsError):
        fs.unlink("dirfile/xx")


def test_long_names_are_truncated(fs):
    fs.mkdir("12345678901234")
    fs.mkdir("12345678901234/123456789012345")
    fd = fs.open("123456789012345/123456789012345/123456789012345", OpenFlag.CREATE)
    fs.close(fd)
    fd = fs.open("12345678901234/12345678901234/12345678901234")
    assert fs.fstat(fd).type == FileType.FILE
    with pytest.raises(FsError):
        fs.mkdir("12345678901234/12345678901234")
    with pytest.raises(FsError):
        fs.mkdir("123456789012345/12345678901234")
    assert DIRSIZ == len("12345678901234")


def test_empty_names_fail(fs):
    with pytest.raises(FsError):
        fs.mkdir("")
    with pytest.raises(FsError):
        fs.open("", OpenFlag.CREATE)


def test_chdir_into_removed_directory(fs):
    fs.mkdir("iputdir")
    fs.chdir("iputdir")
    fs.unlink("../iputdir")
    fs.chdir("/")
    with pytest.raises(FsError):
        fs.open("iputdir")


def test_device_node(fs):
    fs.mknod("console", 1, 1)
    fd = fs.open("console", OpenFlag.RDWR)
    assert fs.fstat(fd).type == FileType.DEV
    with pytest.raises(FsError):
        fs.read(fd, 1)
    with pytest.raises(FsError):
        fs.open("console", OpenFlag.CREATE)


def test_many_links_in_one_directory(fs):
    make_file(fs, "bd", b"")
    names = [f"x{i}" for i in range(500)]
    for name in names:
        fs.link("bd", name)
    fs.unlink("bd")
    fd = fs.open(names[-1])
    assert fs.fstat(fd).nlink == len(names)
    fs.close(fd)
    for name in names:
        fs.unlink(name)
    with pytest.raises(FsError):
        fs.open(names[0])


def test_create_existing_file_keeps_content(fs):
    make_file(fs, "f", b"keep")
    fd = fs.open("f", RW_CREATE)
    assert fs.read(fd, 10) == b"keep"