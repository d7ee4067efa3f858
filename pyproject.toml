[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "travelsplit"
version = "0.2.2"
description = "A chat bot that tracks shared travel expenses, transfers and balances between travelers."
requires-python = ">=3.10"
dependencies = []
keywords = ["chat", "bot", "expenses", "travel", "split", "balances"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Office/Business :: Financial",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
travelsplit = "travelsplit.bot:main"

[tool.hatch.build.targets.wheel]
packages = ["travelsplit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
