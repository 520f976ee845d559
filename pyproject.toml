[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hypermine"
version = "0.1.0"
description = "Client-side pieces for a hyperbolic voxel world simulation: view orientation, motion prediction, bounded vectors, background loading, ring and staging buffers, timing metrics"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["voxel", "simulation", "game", "character-controller", "prediction", "ring-buffer"]
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
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["hypermine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
