[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ankituls"
version = "0.1.0"
description = "Export and import Anki decks as TOML, JSON or YAML through AnkiConnect"
requires-python = ">=3.11"
keywords = ["anki", "ankiconnect", "flashcards", "toml", "yaml", "json", "export"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
]
dependencies = [
    "pyyaml",
    "tomli-w",
    "termcolor",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
ankitu = "ankituls.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ankituls"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
