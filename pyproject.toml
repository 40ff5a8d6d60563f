[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spanmetrics"
version = "0.1.0"
description = "In-process instrumentation: counters, distributions, function statistics, trace headers and environment stats."
requires-python = ">=3.10"
dependencies = []
keywords = ["monitoring", "metrics", "instrumentation", "tracing", "statistics"]
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
    "Topic :: System :: Monitoring",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["spanmetrics"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
