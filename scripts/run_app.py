#!/usr/bin/env python3
"""Utility to verify dependencies and launch the News Aggregator API.

This script handles:
- Installing the project (and its dependencies) from pyproject.toml
- Reporting which news providers are configured
- Starting the FastAPI backend under uvicorn
- Graceful shutdown on Ctrl+C
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
import time
import urllib.error
import urllib.request
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
PYPROJECT_FILE = ROOT_DIR / "pyproject.toml"
UVICORN_APP = "src.news_aggregator.api.server:app"


def ensure_dependencies(skip_install: bool, upgrade: bool = False) -> None:
    """Ensure the project and its dependencies are installed.

    Args:
        skip_install: If True, skip dependency installation entirely.
        upgrade: If True, upgrade packages to latest versions.
    """

    if skip_install:
        print("[deps] Skipping dependency check (requested).")
        return

    if not PYPROJECT_FILE.exists():
        raise FileNotFoundError(f"Could not find {PYPROJECT_FILE}.")

    print(f"[deps] Ensuring dependencies from {PYPROJECT_FILE} are installed...")
    cmd = [sys.executable, "-m", "pip", "install", "-e", str(ROOT_DIR)]
    if upgrade:
        cmd.append("--upgrade")
    subprocess.check_call(cmd, cwd=ROOT_DIR)  # noqa: S603,S607 - controlled input
    print("[deps] Dependencies are ready.")


def check_env_vars() -> list[str]:
    """Report provider keys; return the ones that are missing.

    Missing provider keys are not fatal: the API falls back to the next
    provider and finally to synthetic articles.
    """

    providers = ["GNEWS_API_KEY", "NEWSAPI_KEY"]
    missing = [var for var in providers if not os.environ.get(var)]

    for var in missing:
        print(f"[env] Note: {var} not set; that provider will be skipped.")
    if len(missing) == len(providers):
        print("[env] No provider keys configured. Responses will use synthetic articles.")

    if not os.environ.get("JWT_SECRET"):
        print("[env] WARNING: JWT_SECRET not set; using the insecure development default.")

    return missing


def start_process(label: str, command: Sequence[str], env: dict[str, str]) -> subprocess.Popen:
    """Launch a child process and return the handle."""

    print(f"[{label}] {' '.join(command)}")
    return subprocess.Popen(  # noqa: S603 - command constructed above
        command,
        cwd=ROOT_DIR,
        env=env,
    )


def wait_for_backend(base_url: str, timeout: float) -> None:
    """Poll the backend health endpoint until it responds or timeout occurs."""

    health_url = f"{base_url.rstrip('/')}" + "/health"
    deadline = time.time() + timeout
    print(f"[backend] Waiting for health check at {health_url} ...")
    while time.time() < deadline:
        try:
            with urllib.request.urlopen(health_url, timeout=3):  # noqa: S310
                print("[backend] Health check succeeded.")
                return
        except urllib.error.URLError:
            time.sleep(1.0)
    print("[backend] Health check timed out.")


def shutdown_process(proc: subprocess.Popen | None, label: str) -> None:
    if proc is None or proc.poll() is not None:
        return

    print(f"[{label}] Stopping...")
    proc.terminate()
    try:
        proc.wait(timeout=10)
    except subprocess.TimeoutExpired:
        print(f"[{label}] Terminate timed out. Killing...")
        proc.kill()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Verify Python dependencies are installed, then start the News Aggregator API."
    )
    parser.add_argument(
        "--skip-install",
        action="store_true",
        help="Skip running 'pip install -e .' before launching.",
    )
    parser.add_argument(
        "--upgrade-deps",
        action="store_true",
        help="Upgrade all dependencies to latest versions.",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host/interface for the FastAPI server (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", 3000)),
        help="Port for the FastAPI server (default: $PORT or 3000).",
    )
    parser.add_argument(
        "--startup-timeout",
        type=float,
        default=30.0,
        help="Seconds to wait for the health endpoint after launch.",
    )
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable uvicorn auto-reload (enabled by default).",
    )
    parser.add_argument(
        "--skip-env-check",
        action="store_true",
        help="Skip reporting provider environment variables.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    env_file = ROOT_DIR / ".env"
    if env_file.exists():
        load_dotenv(env_file)
        print(f"[env] Loaded environment from {env_file}")

    if not args.skip_env_check:
        check_env_vars()

    try:
        ensure_dependencies(skip_install=args.skip_install, upgrade=args.upgrade_deps)
    except (subprocess.CalledProcessError, FileNotFoundError) as exc:
        print(f"[deps] Dependency installation failed: {exc}")
        return 1

    base_url = f"http://{args.host}:{args.port}"
    backend_cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        UVICORN_APP,
        "--host",
        args.host,
        "--port",
        str(args.port),
    ]
    if not args.no_reload:
        backend_cmd.append("--reload")

    backend_proc = None
    try:
        backend_proc = start_process("backend", backend_cmd, os.environ.copy())
        wait_for_backend(base_url, args.startup_timeout)

        print("[runner] API is running. Press Ctrl+C to stop.")
        print(f"[runner] Backend API: {base_url}")
        print(f"[runner] API Docs: {base_url}/docs")

        while True:
            status = backend_proc.poll()
            if status is not None:
                print(f"[backend] exited with status {status}.")
                break
            time.sleep(0.5)
    except KeyboardInterrupt:
        print("\n[runner] Caught KeyboardInterrupt. Shutting down...")
    finally:
        shutdown_process(backend_proc, "backend")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
