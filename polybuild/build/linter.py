"""Dependency-category lint: declared dependency categories vs. backend support."""

from __future__ import annotations

from typing import Dict, List

from polybuild.data import BackendDescriptor, LintFinding, LintKind, ProjectConfig
from polybuild.logging import get_logger

logger = get_logger("build.linter")


def _check(
    dependencies: Dict[str, str],
    categories: Dict[str, str],
    descriptor: BackendDescriptor,
    dev: bool,
) -> List[LintFinding]:
    findings: List[LintFinding] = []
    supported = tuple(sorted(descriptor.dependency_categories))
    for dep in dependencies:
        category = (categories.get(dep) or "").strip()
        if not category:
            findings.append(
                LintFinding(
                    dependency=dep,
                    category=None,
                    kind=LintKind.MISSING_CATEGORY,
                    backend=descriptor.name,
                    supported=supported,
                    dev=dev,
                )
            )
        elif category.lower() not in descriptor.dependency_categories:
            findings.append(
                LintFinding(
                    dependency=dep,
                    category=category,
                    kind=LintKind.UNSUPPORTED_CATEGORY,
                    backend=descriptor.name,
                    supported=supported,
                    dev=dev,
                )
            )
    return findings


def lint_dependencies(config: ProjectConfig, descriptor: BackendDescriptor) -> List[LintFinding]:
    """Cross-check declared dependency categories against what the backend supports.

    Runtime dependencies are checked first, then development dependencies. A dependency
    without a category yields a "missing category" finding; a category the backend does not
    declare (compared case-insensitively) yields an "unsupported category" finding.

    Parameters
    ----------
    config : ProjectConfig
        The project configuration.
    descriptor : BackendDescriptor
        Descriptor of the resolved backend.

    Returns
    -------
    List[LintFinding]
        Warnings only. The caller decides whether findings fail a command.
    """
    categories = config.dependency_categories
    return [
        *_check(config.dependencies, categories, descriptor, dev=False),
        *_check(config.dev_dependencies, categories, descriptor, dev=True),
    ]


def log_findings(findings: List[LintFinding]) -> None:
    for finding in findings:
        logger.warning(finding.message)
