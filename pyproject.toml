[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slinkyops"
version = "0.4.0"
description = "Controller helpers for Slurm clusters whose nodes run as pods"
requires-python = ">=3.10"
dependencies = []
keywords = ["slurm", "kubernetes", "operator", "controller", "clustering"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["slinkyops"]

[tool.pytest.ini_options]
addopts = "-ra"
