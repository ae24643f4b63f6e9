"""
CommitGuard - Pre-commit and CI scanner for leaked secrets, vulnerable dependencies and suspicious commit language

A concurrent security scanner for developer workstations and CI pipelines that detects:
- Hardcoded secrets and credentials
- Dependencies with known vulnerabilities (via the OSV database)
- Suspicious "social engineering" language in code and commit messages

Licensed under the Apache License 2.0
"""

__version__ = "1.0.0"


__all__ = [
    "__version__",
]
