[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "prehnite"
version = "0.59.0"
description = "Row, schema and index-key encodings plus EXPLAIN cardinality estimation for a small relational database engine"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "storage", "encoding", "mvcc", "index", "explain", "selectivity", "cardinality"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["prehnite"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
