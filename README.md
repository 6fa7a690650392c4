# xvtools

Building blocks of a small teaching operating system. Each piece is plain
Python that you can run, inspect and test.

## Installing

    pip install .

To run the tests:

    pip install ".[test]"
    pytest

## Commands

`xv-wc [FILE ...]` prints the line, word and byte counts of each named file,
or of standard input when no file is given. The output line for each input
has the form `LINES WORDS BYTES NAME`:

    xv-wc notes.txt

If a file cannot be opened, it prints `wc: cannot open NAME` and exits with
status 1.

`xv-memdemo` shows what `memset`, a NUL byte placed inside a buffer, and
`strcat` do to a small character buffer. It prints one step at a time and
waits for Enter between steps. With `--no-pause` it prints every step
without waiting:

    xv-memdemo --no-pause

## Modules

- `xvtools.shparse`: `tokenize` splits a command line into `Token`s.
  `parse_command` turns a line such as `ls > out; cat < in | wc &` into a
  tree of `ExecCmd`, `RedirCmd`, `PipeCmd`, `ListCmd` and `BackCmd`. Bad
  input raises `ShellSyntaxError`. `parse_builtin_cd` returns the target of
  a `cd ` line, or `None` for any other line.
- `xvtools.openflags`: the `OpenFlag` mode bits (`RDONLY`, `WRONLY`,
  `RDWR`, `CREATE`), with `is_readable` and `is_writable`.
- `xvtools.wordcount`: `count_bytes`, `count_stream` and the `Counts`
  result (`lines`, `words`, `chars`). `main` is the entry point of `xv-wc`.
- `xvtools.cstring`: helpers for NUL-terminated byte strings with C
  semantics: `strcmp`, `strncmp`, `strncpy`, `safestrcpy`, `strlen`,
  `strchr` (returns an index or `None`), `atoi`, `memcmp`, `memmove`
  (works in place on a `bytearray`) and `gets` (reads one line from a
  binary stream).
- `xvtools.tslist`: `ThreadSafeList`, a doubly linked list of `ListItem`
  nodes guarded by a lock. It provides `add`, `remove` (matches by
  identity), `each`, `len()` and iteration.
- `xvtools.memdemo`: `memset`, `cstr`, `strcat`, `render` and
  `demo_lines`. `demo_lines` returns the steps that `xv-memdemo` prints.
- `xvtools.kralloc`: `Allocator`, a first-fit free-list allocator over a
  simulated heap. It provides `malloc`, `free` and `free_blocks`, and
  raises `MemoryError` once its unit limit is reached.
- `xvtools.mmu`: paging and layout constants, the address helpers (`pdx`,
  `ptx`, `pgaddr`, `pgroundup`, `pgrounddown`, `pte_addr`, `pte_flags`,
  `v2p`, `p2v`), `seg_asm` and `seg_nullasm`, and the `SegmentDescriptor`
  and `GateDescriptor` classes, each with `to_bytes`.
- `xvtools.elf`: `ElfHeader` and `ProgramHeader` with `pack` and
  `unpack`. `ElfHeader.program_headers` reads the program headers that a
  header describes. Malformed data raises `ElfFormatError`.
- `xvtools.traps`: the `Syscall`, `Trap` and `Irq` numbers, and
  `SyscallTable`, whose `dispatch` raises `UnknownSyscall` for a number
  that has no handler.
- `xvtools.vm`: `PhysicalMemory` and `AddressSpace`, a two-level x86 page
  table kept in simulated physical pages. Both can optionally carry
  `KernelMapping`s. Errors raise `VmError`, or `OutOfMemory` when no page
  is free.
- `xvtools.locks`: `SpinLock` (also usable as a context manager),
  `SleepLock` and `InterruptState`, which nests interrupt disabling.
  Misuse raises `LockError`.
- `xvtools.interrupts`: `handle_trap` decides what a trap does and returns
  a `TrapOutcome`. Also here are `TickClock` (`tick`, `uptime`, `sleep`),
  `TrapFrame`, `Process` and `KernelPanic`.
- `xvtools.fs`: `FileSystem`, an in-memory file system with file
  descriptors, directories, links and device nodes. It provides `open`,
  `close`, `read`, `write`, `dup`, `fstat`, `link`, `unlink`, `mkdir`,
  `mknod` and `chdir`. Failures raise `FsError`.

## Example

```python
from xvtools.shparse import parse_command
from xvtools.fs import FileSystem
from xvtools.openflags import OpenFlag

cmd = parse_command("echo hi > out.txt")
print(cmd.file, cmd.cmd.argv)        # out.txt ['echo', 'hi']

fs = FileSystem()
fd = fs.open("notes", OpenFlag.CREATE | OpenFlag.RDWR)
fs.write(fd, b"hello")
fs.close(fd)
fd = fs.open("notes")
print(fs.read(fd, 100))              # b'hello'
```

## What it does not do

- The shell module only parses command lines. It does not run programs,
  open redirection targets or create pipes, and there is no interactive
  shell command.
- `FileSystem` keeps everything in memory. There is no disk image, block
  cache or log, and device nodes have no drivers, so reading or writing
  one raises `FsError`.
- Nothing here boots or schedules processes. `handle_trap` reports what
  should happen, such as exiting, yielding or acknowledging an interrupt,
  but it does not perform those actions.