[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvtools"
version = "0.1.0"
description = "Building blocks of a small teaching kernel: shell parsing, word counting, C string helpers, a free-list allocator, x86 paging and descriptors, ELF headers, locks, trap handling and an in-memory file system."
requires-python = ">=3.10"
dependencies = []
keywords = ["kernel", "teaching", "shell", "paging", "allocator", "elf", "simulation"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv-wc = "xvtools.wordcount:main"
xv-memdemo = "xvtools.memdemo:main"

[tool.hatch.build.targets.wheel]
packages = ["xvtools"]

[tool.pytest.ini_options]
addopts = "-ra"
