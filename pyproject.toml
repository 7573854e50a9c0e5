[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clusterlint"
version = "0.1.0"
description = "Linter for Kubernetes objects fetched from a live cluster"
requires-python = ">=3.10"
keywords = ["kubernetes", "linter", "cluster", "best-practices", "doks"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "pyyaml>=6.0",
    "requests>=2.28",
    "termcolor>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "responses>=0.23",
]

[project.scripts]
clusterlint = "clusterlint.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["clusterlint"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
