[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vecstore-client"
version = "0.1.0"
description = "Client operations for a vector database service: inserts, partitions, access control, resource groups and compaction, over a service object you supply."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "vector database",
    "client",
    "partitions",
    "rbac",
    "resource groups",
    "compaction",
]
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
    "Topic :: Database :: Front-Ends",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vecstore_client"]

[tool.pytest.ini_options]
addopts = "-ra"
