[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "benchscope"
version = "0.1.0"
description = "Unit-aware formatting, terminal reports and SVG charts of benchmark measurements"
requires-python = ">=3.10"
keywords = ["benchmark", "statistics", "performance", "report", "plot", "svg"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
    "Topic :: System :: Benchmark",
]
dependencies = [
    "matplotlib",
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["benchscope"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
