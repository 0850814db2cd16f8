[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "interleave"
version = "0.7.2"
description = "Runtime core for permutation testing of concurrent code: causality tracking, schedule exploration and cooperative thread scheduling"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "concurrency",
    "permutation testing",
    "model checking",
    "dpor",
    "vector clocks",
    "scheduling",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["interleave"]

[tool.hatch.build.targets.sdist]
include = ["interleave", "tests", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
