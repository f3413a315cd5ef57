"""Concrete backend implementations for different toolchains."""

from .gcc import CCompiler, CppCompiler, FortranCompiler, GccFamilyCompiler
from .java import JavaCompiler
from .masm import MasmCompiler
from .native import GoCompiler, RustCompiler
from .runners import NodeRunner, PythonRunner

__all__ = [
    "GccFamilyCompiler",
    "CCompiler",
    "CppCompiler",
    "FortranCompiler",
    "MasmCompiler",
    "GoCompiler",
    "RustCompiler",
    "JavaCompiler",
    "PythonRunner",
    "NodeRunner",
]
