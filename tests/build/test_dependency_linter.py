import sys

import pytest

from polybuild.build.linter import lint_dependencies
from polybuild.data import BackendDescriptor, BackendKind, LintKind, ProjectConfig

_NATIVE = BackendDescriptor(
    name="c",
    kind=BackendKind.COMPILER,
    source_extensions=(".c",),
    dependency_categories=frozenset({"native", "runtime"}),
)


def test_no_dependencies_no_findings():
    assert lint_dependencies(ProjectConfig(name="p"), _NATIVE) == []


def test_supported_categories_are_case_insensitive():
    config = ProjectConfig(
        name="p",
        dependencies={"zlib": "1.3"},
        dependency_categories={"zlib": "NATIVE"},
    )
    assert lint_dependencies(config, _NATIVE) == []


def test_missing_and_unsupported_categories():
    config = ProjectConfig(
        name="p",
        dependencies={"zlib": "1.3", "left-pad": "1.0"},
        dev_dependencies={"cmocka": "1.1", "jest": "29"},
        dependency_categories={"left-pad": "npm", "jest": "npm", "cmocka": " "},
    )
    findings = lint_dependencies(config, _NATIVE)

    assert [(f.dependency, f.kind, f.dev) for f in findings] == [
        ("zlib", LintKind.MISSING_CATEGORY, False),
        ("left-pad", LintKind.UNSUPPORTED_CATEGORY, False),
        ("cmocka", LintKind.MISSING_CATEGORY, True),
        ("jest", LintKind.UNSUPPORTED_CATEGORY, True),
    ]
    assert all(f.severity == "warning" for f in findings)

    unsupported = findings[1]
    assert unsupported.category == "npm"
    assert unsupported.supported == ("native", "runtime")
    assert "left-pad" in unsupported.message
    assert "npm" in unsupported.message
    assert "native, runtime" in unsupported.message
    assert "zlib" in findings[0].message


if __name__ == "__main__":
    pytest.main(sys.argv)
