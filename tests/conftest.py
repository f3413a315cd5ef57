import threading
import time
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

import pytest
import yaml

from polybuild.compile import BackendRegistry, Compiler
from polybuild.compile.utils import ProcessResult
from polybuild.data import BackendDescriptor, BackendKind, BuildConfig


class RecordingCompiler(Compiler):
    """Compiler double that writes artifacts without any external tool.

    Sources listed in ``fail`` fail to assemble. With ``partial`` they leave a written artifact
    behind first. Sources listed in ``crash`` raise after writing one. The compiler records which
    sources it assembled, the link calls it received and the peak number of concurrent assemble
    calls.
    """

    DESCRIPTOR = BackendDescriptor(
        name="fake",
        kind=BackendKind.COMPILER,
        source_extensions=(".c",),
        dependency_categories=frozenset({"native", "runtime"}),
    )
    TOOLS = ()

    def __init__(
        self,
        fail: Iterable[str] = (),
        delay: float = 0.0,
        link_error: Optional[str] = None,
        artifact_path=None,
        partial: bool = False,
        crash: Iterable[str] = (),
    ) -> None:
        super().__init__(artifact_path=artifact_path)
        self.fail = set(fail)
        self.partial = partial
        self.crash = set(crash)
        self.delay = delay
        self.link_error = link_error
        self.assembled: List[str] = []
        self.links: List[List[Path]] = []
        self.max_active = 0
        self._active = 0
        self._lock = threading.Lock()

    def _assemble(
        self, project_path: Path, source_path: Path, artifact: Path, config: BuildConfig
    ) -> ProcessResult:
        source = source_path.relative_to(project_path).as_posix()
        with self._lock:
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        try:
            if self.delay:
                time.sleep(self.delay)
            with self._lock:
                self.assembled.append(source)
            if self.partial or source in self.crash:
                artifact.write_text(f"partial object of {source}\n")
            if source in self.crash:
                raise RuntimeError(f"{source}: tool crashed")
            if source in self.fail:
                return ProcessResult(returncode=1, stderr=f"{source}: syntax error")
            artifact.write_text(f"object of {source}\n")
            return ProcessResult(returncode=0)
        finally:
            with self._lock:
                self._active -= 1

    def _link(self, artifacts: List[Path], output_file: Path, config: BuildConfig) -> ProcessResult:
        self.links.append(list(artifacts))
        if self.link_error is not None:
            return ProcessResult(returncode=1, stderr=self.link_error)
        output_file.write_text("".join(a.read_text() for a in artifacts))
        return ProcessResult(returncode=0)


def write_project(
    root: Path, config: Dict, files: Dict[str, str], config_name: str = "polybuild.yaml"
) -> Path:
    """Create a project tree with a configuration file and source files."""
    root.mkdir(parents=True, exist_ok=True)
    with open(root / config_name, "w") as f:
        yaml.safe_dump(config, f)
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture creating a project under ``tmp_path``."""

    def _make(config: Dict, files: Dict[str, str], name: str = "proj") -> Path:
        return write_project(tmp_path / name, config, files)

    return _make


@pytest.fixture
def fake_compiler() -> RecordingCompiler:
    return RecordingCompiler()


@pytest.fixture
def fake_registry(fake_compiler: RecordingCompiler) -> BackendRegistry:
    """A frozen registry whose ``fake`` backend always returns the same compiler instance."""
    registry = BackendRegistry(default_backend="fake")
    registry.register_compiler("fake", lambda: fake_compiler)
    return registry.freeze()
