import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from polybuild import __version__
from polybuild.build import BuildOptions, BuildOrchestrator, ConsoleProgressReporter
from polybuild.compile import create_default_registry
from polybuild.errors import BuildError, DebugFailure, RunFailure
from polybuild.logging import configure_logging, get_logger

logger = get_logger("cli")

EXIT_OK = 0
EXIT_FAILURE = 1


def _orchestrator() -> BuildOrchestrator:
    return BuildOrchestrator(create_default_registry(), reporter=ConsoleProgressReporter())


def build(args: argparse.Namespace) -> int:
    """Build the project, optionally persisting the overrides and starting the debugger."""
    orchestrator = _orchestrator()
    config = orchestrator.load_config(args.project)
    options = BuildOptions(
        clean=args.clean, mode=args.mode, jobs=args.jobs, extra_args=tuple(args.extra_arg or ())
    )

    if args.save:
        saved = config.with_overrides(mode=args.mode, jobs=args.jobs)
        path = orchestrator.store.save(saved, args.project)
        print(f"Saved build settings to {path}")
        config = saved

    outcome = orchestrator.build_config(args.project, config, options)
    if not outcome.success:
        for message in outcome.messages:
            print(message, file=sys.stderr)
        return outcome.errors[0].exit_code if outcome.errors else BuildError.exit_code

    print(
        f"Build succeeded: {len(outcome.compiled)} compiled, {len(outcome.skipped)} up to date"
    )
    if outcome.output is not None:
        print(f"- Output: {outcome.output}")

    if args.debug and not orchestrator.debug(args.project, options=options):
        print("Debugger exited with an error.", file=sys.stderr)
        return DebugFailure.exit_code
    return EXIT_OK


def lint(args: argparse.Namespace) -> int:
    """Report dependency-category findings. Exits 1 if there are any."""
    findings = _orchestrator().lint(args.project)
    if not findings:
        print("No dependency category issues found.")
        return EXIT_OK
    for finding in findings:
        print(f"warning: {finding.message}")
    print(f"{len(findings)} finding(s).")
    return EXIT_FAILURE


def run(args: argparse.Namespace) -> int:
    """Run the built output (or the main script of an interpreted project)."""
    if not _orchestrator().run(args.project, stdin=args.stdin):
        return RunFailure.exit_code
    return EXIT_OK


def test(args: argparse.Namespace) -> int:
    """Build the test program with linking forced on, then run it."""
    orchestrator = _orchestrator()
    config = orchestrator.load_config(args.project)
    entry = args.entry or config.build.test_entry
    if not entry:
        print(
            "No test entry given. Pass one or set 'build.testEntry' in the configuration.",
            file=sys.stderr,
        )
        return EXIT_FAILURE

    options = BuildOptions(
        test_entry=entry,
        force_link=True,
        jobs=args.jobs,
        extra_args=tuple(args.extra_arg or ()),
    )
    outcome = orchestrator.build_config(args.project, config, options)
    if not outcome.success:
        for message in outcome.messages:
            print(message, file=sys.stderr)
        return outcome.errors[0].exit_code if outcome.errors else BuildError.exit_code

    if not orchestrator.run(args.project, stdin=args.stdin, options=options):
        return RunFailure.exit_code
    print(f"Tests passed: {entry}")
    return EXIT_OK


def parse_package_spec(spec: str) -> Tuple[str, str]:
    """Split ``name[@version]`` into name and version (``*`` when omitted)."""
    name, sep, version = spec.partition("@")
    name = name.strip()
    if not name:
        raise ValueError(f"Invalid package spec: '{spec}'")
    version = version.strip() if sep else ""
    return name, version or "*"


def add(args: argparse.Namespace) -> int:
    """Declare a dependency in the project configuration."""
    orchestrator = _orchestrator()
    config = orchestrator.load_config(args.project)
    name, version = parse_package_spec(args.package)
    updated = config.with_dependency(name, version, category=args.category, dev=args.dev)
    orchestrator.store.save(updated, args.project)
    kind = "dev dependency" if args.dev else "dependency"
    print(f"Added {kind} {name}@{version}")
    return EXIT_OK


def backends(args: argparse.Namespace) -> int:
    """List the registered backends and whether their tools are installed."""
    for descriptor, available in create_default_registry().descriptors():
        status = "available" if available else "not found"
        print(
            f"{descriptor.name:<10} {descriptor.kind.value:<9} "
            f"{' '.join(descriptor.source_extensions):<20} "
            f"[{', '.join(sorted(descriptor.dependency_categories))}] ({status})"
        )
    return EXIT_OK


def _add_build_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-j", "--jobs", type=int, default=None, help="Maximum number of concurrent compiles."
    )
    parser.add_argument(
        "--extra-arg",
        action="append",
        metavar="ARG",
        help="Extra argument for the compiler and linker. May be repeated.",
    )


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="polybuild",
        description="Multi-backend build orchestrator",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"polybuild {__version__}")
    parser.add_argument(
        "--project", type=Path, default=Path.cwd(), help="Project root (default: cwd)."
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: INFO).")

    command_subparsers = parser.add_subparsers(
        dest="command", required=True, help="Primary commands"
    )

    build_parser = command_subparsers.add_parser("build", help="Build the project.")
    build_parser.add_argument(
        "--clean", action="store_true", help="Remove build outputs before building."
    )
    build_parser.add_argument(
        "--mode", choices=["debug", "release"], default=None, help="Override the build mode."
    )
    build_parser.add_argument(
        "--debug", action="store_true", help="Start the debugger after a successful build."
    )
    build_parser.add_argument(
        "--save", action="store_true", help="Persist --mode and --jobs to the configuration."
    )
    _add_build_arguments(build_parser)
    build_parser.set_defaults(func=build)

    lint_parser = command_subparsers.add_parser(
        "lint", help="Check dependency categories against the backend."
    )
    lint_parser.set_defaults(func=lint)

    run_parser = command_subparsers.add_parser("run", help="Run the built project.")
    run_parser.add_argument("--stdin", type=Path, default=None, help="Feed FILE on stdin.")
    run_parser.set_defaults(func=run)

    test_parser = command_subparsers.add_parser("test", help="Build and run a test program.")
    test_parser.add_argument(
        "entry", nargs="?", default=None, help="Test program (default: build.testEntry)."
    )
    test_parser.add_argument("--stdin", type=Path, default=None, help="Feed FILE on stdin.")
    _add_build_arguments(test_parser)
    test_parser.set_defaults(func=test)

    add_parser = command_subparsers.add_parser("add", help="Declare a dependency.")
    add_parser.add_argument("package", help="Package as name[@version].")
    add_parser.add_argument("--category", default=None, help="Dependency category.")
    add_parser.add_argument("--dev", action="store_true", help="Add as a dev dependency.")
    add_parser.set_defaults(func=add)

    backends_parser = command_subparsers.add_parser("backends", help="List available backends.")
    backends_parser.set_defaults(func=backends)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Parse ``argv`` and run the selected command. Returns the process exit code."""
    args = _make_parser().parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except BuildError as e:
        logger.error(str(e))
        return e.exit_code
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FAILURE


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
