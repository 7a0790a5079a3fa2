from __future__ import annotations

import argparse
import shlex
import subprocess
import sys
from pathlib import Path


ROOT_DIR = Path(__file__).resolve().parents[1]


def _run(cmd: list[str]) -> int:
    print(f"+ {shlex.join(cmd)}")
    return subprocess.run(cmd, cwd=ROOT_DIR).returncode


def cmd_setup(args: argparse.Namespace) -> int:
    return _run([sys.executable, "-m", "pip", "install", "-e", ".[test]"])


def cmd_test(args: argparse.Namespace) -> int:
    passthrough = [arg for arg in args.pytest_args if arg != "--"]
    return _run([sys.executable, "-m", "pytest", *passthrough])


def cmd_seed(args: argparse.Namespace) -> int:
    return _run([sys.executable, str(ROOT_DIR / "scripts" / "seed_demo.py")])


def cmd_web(args: argparse.Namespace) -> int:
    print(f"starting dashboard at http://{args.host}:{args.port}")
    return _run(
        [sys.executable, "-m", "uvicorn", "app.main:app", "--host", args.host, "--port", str(args.port), "--reload"]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Task runner for the FM maturity dashboard.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("setup", help="Install the project with test extras.").set_defaults(func=cmd_setup)

    test_parser = sub.add_parser("test", help="Run pytest.")
    test_parser.add_argument("pytest_args", nargs=argparse.REMAINDER, help="Optional pytest args.")
    test_parser.set_defaults(func=cmd_test)

    sub.add_parser("seed", help="Seed the reference lookup backend.").set_defaults(func=cmd_seed)

    web_parser = sub.add_parser("web", help="Run the dashboard with uvicorn.")
    web_parser.add_argument("--host", default="127.0.0.1")
    web_parser.add_argument("--port", type=int, default=8000)
    web_parser.set_defaults(func=cmd_web)

    return parser


def main() -> int:
    args = build_parser().parse_args()
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
