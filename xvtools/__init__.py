"""Building blocks of a small teaching operating system: shell parsing,
word counting, C string helpers, a linked list, an allocator, paging,
descriptors, ELF headers, locks, trap handling and an in-memory file system."""

__version__ = "0.1.0"