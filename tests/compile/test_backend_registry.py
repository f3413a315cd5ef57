import sys
from pathlib import Path

import pytest

from polybuild.compile import (
    DEFAULT_BACKEND,
    BackendRegistry,
    Compiler,
    Runner,
    create_default_registry,
    flatten,
)
from polybuild.compile.backends import CCompiler, JavaCompiler, MasmCompiler, PythonRunner
from polybuild.compile.utils import ProcessResult
from polybuild.data import BackendDescriptor, BackendKind, BuildConfig
from polybuild.errors import UnknownBackendError


def test_default_registry_contents():
    registry = create_default_registry()
    assert registry.frozen
    assert registry.default_backend == DEFAULT_BACKEND == "c"
    assert registry.names() == [
        "c",
        "cpp",
        "fortran",
        "go",
        "java",
        "masm",
        "node",
        "python",
        "rust",
    ]
    assert len(registry) == 9


def test_resolve_is_case_insensitive():
    registry = create_default_registry()
    assert isinstance(registry.resolve("C"), CCompiler)
    assert isinstance(registry.resolve("  Masm "), MasmCompiler)
    assert "JAVA" in registry
    assert "cobol" not in registry
    assert 42 not in registry


def test_resolve_empty_name_uses_default():
    registry = create_default_registry()
    assert isinstance(registry.resolve(""), CCompiler)
    assert isinstance(registry.resolve(None), CCompiler)


def test_resolve_runner():
    registry = create_default_registry()
    backend = registry.resolve("python")
    assert isinstance(backend, PythonRunner)
    assert isinstance(backend, Runner)
    assert registry.find_compiler("python") is None


def test_resolve_unknown_backend():
    registry = create_default_registry()
    assert registry.find_compiler("cobol") is None
    assert registry.find_runner("cobol") is None
    with pytest.raises(UnknownBackendError) as exc_info:
        registry.resolve("cobol")
    assert isinstance(exc_info.value, LookupError)
    assert "cobol" in str(exc_info.value)
    assert "masm" in str(exc_info.value)


def test_compiler_preferred_over_runner():
    registry = BackendRegistry()
    registry.register_runner("py", PythonRunner)
    registry.register_compiler("py", CCompiler, replace=True)
    assert isinstance(registry.resolve("py"), Compiler)
    assert registry.find_runner("py") is None


def test_registration_errors():
    registry = BackendRegistry()
    registry.register_compiler("c", CCompiler)
    with pytest.raises(ValueError):
        registry.register_compiler("C", CCompiler)
    with pytest.raises(ValueError):
        registry.register_runner("c", PythonRunner)
    with pytest.raises(ValueError):
        registry.register_compiler("  ", CCompiler)

    registry.freeze()
    with pytest.raises(RuntimeError):
        registry.register_compiler("cpp", CCompiler)


def test_artifact_path_strategy_is_passed_to_factory(tmp_path: Path):
    registry = BackendRegistry()
    strategy = flatten(".obj")
    registry.register_compiler("c", CCompiler, artifact_path=strategy)
    assert registry.artifact_path_strategy("c") is strategy
    assert registry.artifact_path_strategy("python") is None

    compiler = registry.resolve("c")
    artifact = compiler.get_artifact_path(tmp_path, "src/sub/a.c", "build/obj", BuildConfig())
    assert artifact == tmp_path / "build" / "obj" / "sub_a.obj"


def test_each_backend_uses_its_own_strategy(tmp_path: Path):
    registry = create_default_registry()
    config = BuildConfig()
    c_artifact = registry.resolve("c").get_artifact_path(tmp_path, "src/a/b.c", "obj", config)
    masm_artifact = registry.resolve("masm").get_artifact_path(
        tmp_path, "src/a/b.masm", "obj", config
    )
    java_artifact = registry.resolve("java").get_artifact_path(
        tmp_path, "src/com/x/Main.java", "obj", config
    )
    assert c_artifact == tmp_path / "obj" / "a_b.o"
    assert masm_artifact == tmp_path / "obj" / "a_b.masi"
    assert java_artifact == tmp_path / "obj" / "com" / "x" / "Main.class"


class _DotnetCompiler(Compiler):
    DESCRIPTOR = BackendDescriptor(
        name="csharp",
        kind=BackendKind.COMPILER,
        source_extensions=(".cs",),
        dependency_categories=frozenset({"dotnet"}),
    )
    TOOLS = ("csc",)

    def _assemble(self, project_path, source_path, artifact, config) -> ProcessResult:
        return ProcessResult(returncode=0)

    def _link(self, artifacts, output_file, config) -> ProcessResult:
        return ProcessResult(returncode=0)


def test_out_of_tree_backend_registers_with_own_naming(tmp_path: Path):
    registry = BackendRegistry()
    registry.register_compiler("c", CCompiler, artifact_path=CCompiler.DEFAULT_ARTIFACT_PATH)
    registry.register_compiler("csharp", _DotnetCompiler, artifact_path=flatten(".exe"))
    registry.freeze()

    assert "csharp" not in create_default_registry().names()
    assert registry.names() == ["c", "csharp"]
    compiler = registry.resolve("CSharp")
    assert isinstance(compiler, _DotnetCompiler)
    artifact = compiler.get_artifact_path(tmp_path, "src/app/Program.cs", "obj", BuildConfig())
    assert artifact == tmp_path / "obj" / "app_Program.exe"


def test_descriptors_report_availability(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(
        "polybuild.compile.backend.find_executable",
        lambda *names: "/usr/bin/gcc" if "gcc" in names else None,
    )
    registry = create_default_registry()
    availability = {d.name: available for d, available in registry.descriptors()}
    assert availability["c"] is True
    assert availability["rust"] is False
    assert isinstance(registry.resolve("java"), JavaCompiler)


if __name__ == "__main__":
    pytest.main(sys.argv)
