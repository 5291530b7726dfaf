[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "memcache-exporter"
version = "0.1.0"
description = "Memcached text-protocol helpers, key-to-server selection and Prometheus metric building blocks for memcached statistics"
requires-python = ">=3.10"
dependencies = []
keywords = ["memcached", "prometheus", "metrics", "monitoring", "protocol"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["memcache_exporter"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
