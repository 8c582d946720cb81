[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flexlog"
version = "0.1.0"
description = "Logging building blocks: result types, message pools and queues, a worker thread pool, pattern formatting and CloudWatch-style structured output"
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "formatter", "cloudwatch", "structured-logging", "thread-pool", "result"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["flexlog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
