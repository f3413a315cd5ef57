import sys

import pytest
from pydantic import ValidationError

from polybuild.data import BackendDescriptor, BackendKind, BuildConfig, ProjectConfig


def test_build_config_defaults():
    build = BuildConfig()
    assert build.mode == "debug"
    assert build.output == "build"
    assert build.objdir == "build/obj"
    assert build.jobs == 1
    assert build.incremental is True
    assert build.wildcard is False
    assert build.link is False
    assert build.extra_args == []


def test_build_config_reads_camel_case_and_legacy_compiler_key():
    build = BuildConfig.model_validate(
        {"mode": "RELEASE", "compiler": "cpp", "extraArgs": ["-Wall"], "testEntry": "tests/t.c"}
    )
    assert build.mode == "release"
    assert build.backend == "cpp"
    assert build.extra_args == ["-Wall"]
    assert build.test_entry == "tests/t.c"


def test_build_config_validation():
    with pytest.raises(ValidationError):
        BuildConfig(jobs=0)
    with pytest.raises(ValidationError):
        BuildConfig(mode="fast")
    with pytest.raises(ValidationError):
        BuildConfig(test_entry="../outside.c")
    with pytest.raises(ValidationError):
        BuildConfig(output="")


@pytest.mark.parametrize(
    "field, value",
    [
        ("output", ".."),
        ("output", "/tmp/out"),
        ("output", "."),
        ("objdir", "build/../../obj"),
        ("objdir", "/var/obj"),
    ],
)
def test_build_directories_stay_inside_project(field, value):
    with pytest.raises(ValidationError):
        BuildConfig(**{field: value})
    with pytest.raises(ValidationError):
        ProjectConfig.model_validate({"name": "p", "build": {field: value}})


def test_project_config_rejects_unsafe_main():
    with pytest.raises(ValidationError):
        ProjectConfig(name="p", main="/etc/main.c")
    with pytest.raises(ValidationError):
        ProjectConfig(name="p", main="../main.c")
    with pytest.raises(ValidationError):
        ProjectConfig(name="")


def test_project_config_is_frozen():
    config = ProjectConfig(name="p", main="src/main.c")
    with pytest.raises(ValidationError):
        config.name = "q"


def test_with_overrides_returns_new_value():
    config = ProjectConfig(name="p", build=BuildConfig(extra_args=["-Wall"]))
    effective = config.with_overrides(
        mode="release", link=True, jobs=4, extra_args=["-DTEST"], test_entry="tests/t.c"
    )

    assert effective is not config
    assert effective.build.mode == "release"
    assert effective.build.link is True
    assert effective.build.jobs == 4
    assert effective.build.extra_args == ["-Wall", "-DTEST"]
    assert effective.build.test_entry == "tests/t.c"
    # The loaded value is untouched
    assert config.build.mode == "debug"
    assert config.build.link is False
    assert config.build.extra_args == ["-Wall"]


def test_with_overrides_without_changes_is_identity():
    config = ProjectConfig(name="p")
    assert config.with_overrides() is config


def test_with_overrides_validates():
    config = ProjectConfig(name="p")
    with pytest.raises(ValidationError):
        config.with_overrides(jobs=0)


def test_with_dependency():
    config = ProjectConfig(name="p", dependencies={"zlib": "1.3"})
    updated = config.with_dependency("libm", "2.0", category="Native")
    assert updated.dependencies == {"zlib": "1.3", "libm": "2.0"}
    assert updated.dependency_categories == {"libm": "Native"}
    assert config.dependencies == {"zlib": "1.3"}

    dev = config.with_dependency("cmocka", dev=True)
    assert dev.dev_dependencies == {"cmocka": "*"}
    assert dev.dependencies == {"zlib": "1.3"}

    with pytest.raises(ValueError):
        config.with_dependency("")


def test_backend_descriptor_normalization():
    descriptor = BackendDescriptor(
        name=" GCC ",
        kind=BackendKind.COMPILER,
        source_extensions=(".c",),
        dependency_categories=frozenset({"Native", " runtime "}),
    )
    assert descriptor.name == "gcc"
    assert descriptor.dependency_categories == frozenset({"native", "runtime"})
    assert descriptor.matches("src/Main.C")
    assert not descriptor.matches("src/main.cpp")


def test_backend_descriptor_validation():
    with pytest.raises(ValidationError):
        BackendDescriptor(name="x", kind=BackendKind.COMPILER, source_extensions=("c",))
    with pytest.raises(ValidationError):
        BackendDescriptor(name="x", kind=BackendKind.COMPILER, source_extensions=())


if __name__ == "__main__":
    pytest.main(sys.argv)
