[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kproxy"
version = "0.1.0"
description = "Building blocks for a zero-downtime deployment HTTP proxy: middleware, buffering, rollout and pause control"
requires-python = ">=3.10"
keywords = ["proxy", "http", "deployment", "middleware", "rollout", "zero-downtime"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Internet :: WWW/HTTP",
]
dependencies = [
    "jinja2",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["kproxy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
