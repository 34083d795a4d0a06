[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "modmailer"
version = "0.1.0"
description = "Mod-mail relay that links users' direct messages to staff forum threads"
requires-python = ">=3.11"
dependencies = [
    "aiosqlite",
]
keywords = ["modmail", "moderation", "chat", "bot", "support", "threads"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Framework :: AsyncIO",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["modmailer"]

[tool.hatch.build.targets.sdist]
include = ["modmailer", "tests"]

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
