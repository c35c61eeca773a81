import os
from pathlib import Path
import nox

# Reuse existing virtualenvs for faster runs
nox.options.reuse_existing_virtualenvs = True
# Default sessions when running "nox"
nox.options.sessions = ["lint", "unit", "integration"]

# Project plus its test extra
COMMON_DEPS = ["-e", ".[test]"]

# Environment variables to propagate
PASSED_ENV_VARS = [
    "DATABASE_URL",
    "SECRET_KEY",
    "TIMEZONE",
    "RATE_LIMIT_STORAGE_URI",
]


def _set_env(session):
    """
    Propagate database and test-related environment variables into the session.
    Tests always run with ENVIRONMENT=test.
    """
    session.env["PYTHONPATH"] = str(Path.cwd())
    session.env["ENVIRONMENT"] = "test"
    for var in PASSED_ENV_VARS:
        if var in os.environ:
            session.env[var] = os.environ[var]


@nox.session(name="lint")
def lint(session):
    """
    Code formatting, linting, and type-checks:
      - isort
      - black
      - flake8
      - mypy
    """
    _set_env(session)
    session.install("isort", "black", "flake8", "mypy")
    session.run("isort", "--check-only", "clubcheckin/", "tests/")
    session.run("black", "--check", "clubcheckin/", "tests/")
    session.run("flake8", "--max-line-length=120", "clubcheckin/", "tests/")
    session.run("mypy", "--ignore-missing-imports", "clubcheckin/")


@nox.session(name="unit")
def unit(session):
    """
    Run unit tests.
    Pass positional args to target specific tests.
    Usage:
      nox -s unit             # runs all tests under tests/unit
      nox -s unit -- tests/unit/test_ledger.py::TestRecordCheckin
    """
    _set_env(session)
    session.install(*COMMON_DEPS)
    tests = session.posargs or ["tests/unit"]
    htmlcov_path = ".nox/htmlcov"
    session.run(
        "pytest",
        *tests,
        "-m", "unit",
        "-vv",
        "--tb=short",
        "--cov=clubcheckin",
        "--cov-report=term-missing",
        "--cov-report=html:" + htmlcov_path,
    )


@nox.session(name="integration")
def integration(session):
    """
    Run API and realtime tests through the FastAPI TestClient.
    Usage:
      nox -s integration
      nox -s integration -- tests/integration/test_realtime.py
    """
    _set_env(session)
    session.install(*COMMON_DEPS)
    tests = session.posargs or ["tests/integration"]
    session.run(
        "pytest",
        *tests,
        "-vv",
        "--tb=short",
        "--cov=clubcheckin",
        "--cov-append",
        "--cov-report=term-missing",
        "--cov-fail-under=80",
    )
