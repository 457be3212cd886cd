[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sigscope"
version = "0.1.0"
description = "Software oscilloscope core: triggering, median filtering, ring buffers and signal statistics"
requires-python = ">=3.10"
dependencies = []
keywords = ["oscilloscope", "trigger", "signal", "adc", "median filter", "frequency"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Information Analysis",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sigscope"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
