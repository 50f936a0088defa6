[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "trantor"
version = "1.5.24"
description = "Event-loop building blocks: dates, timers, pollers, task queues and an asynchronous file logger"
requires-python = ">=3.10"
dependencies = []
keywords = ["event loop", "timer", "poller", "epoll", "logging", "task queue", "date"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["trantor"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
