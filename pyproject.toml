[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "csiproxy"
version = "0.1.0"
description = "Request handling for a Windows storage proxy: path validation, SMB, iSCSI, volume and system services, plus a JUnit filter tool"
requires-python = ">=3.10"
dependencies = []
keywords = ["csi", "windows", "storage", "smb", "iscsi", "volume", "junit"]
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
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
filter-junit = "csiproxy.junit_filter:main"

[tool.hatch.build.targets.wheel]
packages = ["csiproxy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
