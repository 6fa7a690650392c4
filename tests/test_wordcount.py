import io

from xvtools.wordcount import Counts, count_bytes, count_stream, main


def test_simple_line():
    data = b"hello world\n"
    counts = count_bytes(data)
    assert counts.chars == len(data)
    assert counts.lines == 1
    assert counts.words == 2


def test_empty_input():
    assert count_bytes(b"") == Counts(0, 0, 0)


def test_separators_collapse():
    assert count_bytes(b"  a \t\r\v b  ").words == count_bytes(b"a b").words


def test_nul_byte_separates_words():
    assert count_bytes(b"a\0b").words == count_bytes(b"a b").words


def test_stream_matches_bytes_across_chunks():
    data = b"x" * 511 + b"yz more words\nand lines\n" * 40
    assert count_stream(io.BytesIO(data)) == count_bytes(data)


def test_word_spanning_chunk_boundary_counts_once():
    data = b"a" * 1500
    assert count_stream(io.BytesIO(data)).words == count_bytes(b"a").words


def test_main_on_files(tmp_path, capsys):
    first = tmp_path / "one.txt"
    second = tmp_path / "two.txt"
    first.write_bytes(b"alpha beta\ngamma\n")
    second.write_bytes(b"")
    assert main([str(first), str(second)]) == 0
    c1 = count_bytes(first.read_bytes())
    out = capsys.readouterr().out.splitlines()
    assert out[0] == f"{c1.lines} {c1.words} {c1.chars} {first}"
    assert out[1] == f"0 0 0 {second}"


def test_main_missing_file_stops(tmp_path, capsys):
    missing = tmp_path / "absent"
    present = tmp_path / "here"
    present.write_bytes(b"x\n")
    assert main([str(missing), str(present)]) == 1
    out = capsys.readouterr().out
    assert out == f"wc: cannot open {missing}\n"