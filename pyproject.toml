[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinyws"
version = "0.1.0"
description = "A small WebSocket server toolkit: frame codec, opening handshake, broadcast rooms and a demo chat server"
requires-python = ">=3.10"
dependencies = []
keywords = ["websocket", "rfc6455", "chat", "server", "frames", "handshake"]
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tinyws-chat = "tinyws.chat:main"

[tool.hatch.build.targets.wheel]
packages = ["tinyws"]

[tool.pytest.ini_options]
addopts = "-ra"
