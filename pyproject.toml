[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vwcore"
version = "0.1.0"
description = "Core pieces of an online linear learner: example parsing, feature hashing, loss functions and model files"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "machine-learning",
    "online-learning",
    "feature-hashing",
    "gradient-descent",
    "loss-functions",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vwcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
