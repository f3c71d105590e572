[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xunicode"
version = "0.1.0"
description = "Table-driven Unicode text segmentation engine with tools for building break tables, parsing UCD files and writing generated tables"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "unicode",
    "segmentation",
    "uax29",
    "uax14",
    "break-table",
    "ucd",
    "bitfield",
    "code-generation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Processing :: General",
    "Topic :: Software Development :: Code Generators",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["xunicode"]

[tool.hatch.build.targets.sdist]
include = ["xunicode", "tests"]

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
