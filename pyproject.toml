[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dnsmonitor"
version = "1.0.0"
description = "Report DNS messages from pcap captures or live interfaces and collect the domain names and translations seen"
requires-python = ">=3.10"
dependencies = []
keywords = ["dns", "pcap", "monitor", "network", "packet"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Name Service (DNS)",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dns-monitor = "dnsmonitor.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["dnsmonitor"]

[tool.pytest.ini_options]
addopts = "-ra"
