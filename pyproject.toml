[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "peertrack"
version = "0.1.0"
description = "A small peer-group tracker with replicated in-memory state, a line-based client and a two-party chat"
requires-python = ">=3.10"
dependencies = []
keywords = ["tracker", "peer-to-peer", "groups", "sockets", "replication", "chat"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: File Sharing",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
peertrack-tracker = "peertrack.tracker:main"
peertrack-client = "peertrack.client:main"
peertrack-chat-server = "peertrack.chat:server_main"
peertrack-chat-client = "peertrack.chat:client_main"

[tool.hatch.build.targets.wheel]
packages = ["peertrack"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"
