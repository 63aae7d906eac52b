[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "serialterm"
version = "3.2.0"
description = "Serial terminal state model, text rendering and WebSocket streaming of serial port data."
requires-python = ">=3.10"
keywords = ["serial", "terminal", "websocket", "tui", "uart", "aiohttp"]
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
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Topic :: Terminals :: Serial",
]
dependencies = [
    "aiohttp>=3.9",
    "pyserial>=3.5",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[tool.hatch.build.targets.wheel]
packages = ["serialterm"]

[tool.hatch.build.targets.sdist]
include = ["serialterm", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
testpaths = ["tests"]
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
