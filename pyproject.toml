[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netlab"
version = "0.1.0"
description = "Small TCP and UDP socket programs: file transfer, echo servers and chat rooms"
requires-python = ">=3.10"
dependencies = []
keywords = ["sockets", "tcp", "udp", "chat", "echo", "file-transfer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Internet",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
netlab-file-server = "netlab.filetransfer:server_main"
netlab-file-client = "netlab.filetransfer:client_main"
netlab-udp-echo-server = "netlab.udpecho:server_main"
netlab-udp-echo-client = "netlab.udpecho:client_main"
netlab-tcp-echo-server = "netlab.tcpecho:server_main"
netlab-tcp-echo-client = "netlab.tcpecho:client_main"
netlab-tcp-chat-server = "netlab.tcpchat:server_main"
netlab-tcp-chat-client = "netlab.tcpchat:client_main"
netlab-udp-chat-server = "netlab.udpchat:server_main"
netlab-udp-chat-client = "netlab.udpchat:client_main"

[tool.hatch.build.targets.wheel]
packages = ["netlab"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
