[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bitpacket"
version = "0.1.0"
description = "Bit-level field access for byte buffers: mask-and-shift operations, field type names and length expressions"
requires-python = ">=3.10"
dependencies = []
keywords = ["packet", "bitfield", "binary", "parsing", "networking", "protocol"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bitpacket"]

[tool.hatch.build.targets.sdist]
include = ["bitpacket", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
