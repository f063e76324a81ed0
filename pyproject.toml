[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kubescore"
version = "0.1.0"
description = "Static analysis of Kubernetes object definitions with scores and recommendations"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["kubernetes", "static-analysis", "lint", "yaml", "manifests"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
kube-score = "kubescore.cli:main"
kubectl-score = "kubescore.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["kubescore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
