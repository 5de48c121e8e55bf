[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "mesisim"
version = "0.1.0"
description = "Cycle-by-cycle simulator of four private L1 caches kept coherent with the MESI protocol over a snooping bus"
requires-python = ">=3.10"
dependencies = []
keywords = ["cache", "MESI", "coherence", "simulator", "multicore", "L1"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mesisim = "mesisim.cli:main"
mesisim-sweep = "mesisim.sweep:main"

[tool.setuptools]
packages = ["mesisim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
