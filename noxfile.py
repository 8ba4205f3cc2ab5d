"""Nox sessions for sequence player development tasks."""

from __future__ import annotations

import nox

nox.options.error_on_missing_interpreters = False
nox.options.sessions = ["lint", "tests", "typecheck"]


@nox.session
def lint(session: nox.Session) -> None:
    """Run ruff linting and formatting checks."""
    session.install("ruff")
    session.run("ruff", "check", ".")
    session.run("ruff", "format", "--check", ".")


@nox.session(name="lint-fix")
def lint_fix(session: nox.Session) -> None:
    """Apply ruff fixes and formatting."""
    session.install("ruff")
    session.run("ruff", "check", "--fix", ".")
    session.run("ruff", "format", ".")


@nox.session
def tests(session: nox.Session) -> None:
    """Run pytest with real audio backends skipped."""
    session.install("-e", ".[dev]")
    session.run("pytest", "-q", env={"SEQUENCE_PLAYER_CI": "1"})


@nox.session
def typecheck(session: nox.Session) -> None:
    """Run mypy over the package."""
    session.install("-e", ".[dev]")
    session.run("mypy", "src/sequence_player")


@nox.session
def build(session: nox.Session) -> None:
    """Build sdist and wheel artifacts."""
    session.install("build")
    session.run("python", "-m", "build")


@nox.session
def coverage(session: nox.Session) -> None:
    """Run coverage reporting."""
    session.install("-e", ".[dev]", "coverage")
    session.run(
        "coverage",
        "run",
        "--source=sequence_player",
        "-m",
        "pytest",
        env={"SEQUENCE_PLAYER_CI": "1"},
    )
    session.run("coverage", "report", "--fail-under=80", "-m")
