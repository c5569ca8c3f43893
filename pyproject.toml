[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "samsync"
version = "0.1.0"
description = "Event-loop friendly synchronisation primitives: barrier, semaphore and condition variable, with cancellation."
requires-python = ">=3.10"
dependencies = []
keywords = ["barrier", "semaphore", "condition-variable", "event-loop", "cancellation", "synchronisation"]
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
    "Topic :: Software Development :: Libraries",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
samsync-bench = "samsync.bench:main"

[tool.hatch.build.targets.wheel]
packages = ["samsync"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
