[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slothgen"
version = "0.1.0"
description = "Multiwindow multi-burn SLO alert windows, an SLO processor pipeline and Prometheus Operator rule mapping."
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["slo", "sli", "prometheus", "alerting", "error-budget", "burn-rate", "monitoring"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
slothgen = "slothgen.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["slothgen"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
