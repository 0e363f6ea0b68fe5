[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rpcroute"
version = "0.1.0"
description = "JSON-RPC 2.0 routing to async Python handlers with type-keyed resource injection"
requires-python = ">=3.10"
dependencies = []
keywords = ["json-rpc", "rpc", "router", "asyncio", "dependency-injection"]
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
    "Framework :: AsyncIO",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
rpcroute-demo = "rpcroute.demo:main"

[tool.hatch.build.targets.wheel]
packages = ["rpcroute"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
