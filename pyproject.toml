[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webpawal"
version = "0.1.0"
description = "WebPA abstraction layer: component caching, WiFi index mapping and cloud notifications over a device data-model bus"
requires-python = ">=3.10"
dependencies = []
keywords = ["webpa", "tr-181", "notifications", "data-model", "broadband"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["webpawal"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
