[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cachebench"
version = "0.1.0"
description = "Small benchmarks of memory layout, access patterns and concurrency strategies"
requires-python = ">=3.11"
keywords = [
    "benchmark",
    "memory hierarchy",
    "cache",
    "jagged arrays",
    "data parallelism",
    "threads",
    "structure of arrays",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]
dependencies = [
    "numpy",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
cachebench-jagged = "cachebench.jagged:main"
cachebench-permuted = "cachebench.permuted:main"
cachebench-strided = "cachebench.strided:main"
cachebench-access = "cachebench.access_patterns:main"
cachebench-data-parallelism = "cachebench.data_parallelism:main"
cachebench-message-passing = "cachebench.message_passing:main"
cachebench-threads = "cachebench.threads:main"
cachebench-locks = "cachebench.locks:main"
cachebench-parallelism = "cachebench.parallelism:main"
cachebench-elements = "cachebench.elements:main"
cachebench-sphere = "cachebench.sphere:main"

[tool.hatch.build.targets.wheel]
packages = ["cachebench"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
