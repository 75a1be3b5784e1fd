[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dnspipe"
version = "0.1.0"
description = "Composable DNS query plugins, matchers, and tools for config files and probing DNS servers"
requires-python = ">=3.11"
keywords = ["dns", "edns0", "pipeline", "plugins", "ptr", "probe", "rfc7766"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Name Service (DNS)",
    "Typing :: Typed",
]
dependencies = [
    "dnspython",
    "pyyaml",
    "tomli-w",
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
dnspipe = "dnspipe.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["dnspipe"]

[tool.hatch.build.targets.sdist]
include = ["dnspipe", "tests", "README.md", "pyproject.toml"]

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
ignore_missing_imports = true
