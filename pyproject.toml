[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fuzzyvessel"
version = "0.1.0"
description = "Retinal vessel segmentation with fuzzy mathematical morphology, plus ROC-style scoring against reference images"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "pillow",
]
keywords = [
    "image processing",
    "mathematical morphology",
    "fuzzy morphology",
    "t-norm",
    "s-norm",
    "black-hat",
    "opening by reconstruction",
    "vessel segmentation",
    "retina",
    "sensitivity",
    "specificity",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
    "Topic :: Scientific/Engineering :: Medical Science Apps.",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
fuzzyvessel-segment = "fuzzyvessel.pipeline:main"
fuzzyvessel-roc = "fuzzyvessel.roc:main"
fuzzyvessel-showcase = "fuzzyvessel.showcase:main"

[tool.hatch.build.targets.wheel]
packages = ["fuzzyvessel"]

[tool.hatch.build.targets.sdist]
include = [
    "fuzzyvessel",
    "tests",
    "README.md",
    "pyproject.toml",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
