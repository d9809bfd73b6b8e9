#!/usr/bin/env python3
"""
Container entrypoint.

Applies migrations, bootstraps the platform super admin when
SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD are set, then execs uvicorn.
"""

import os
import subprocess
import sys


def run_command(cmd: list[str], description: str) -> bool:
    """Run a command and report whether it exited cleanly."""
    print(f"\n=== {description} ===")
    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        print(f"Warning: {description} failed with code {e.returncode}")
        return False
    return True


def main():
    print("\n" + "=" * 50)
    print("SchoolSync Startup")
    print("=" * 50)

    if not run_command(["alembic", "upgrade", "head"], "Running database migrations"):
        sys.exit(1)

    email = os.environ.get("SUPER_ADMIN_EMAIL", "").strip()
    password = os.environ.get("SUPER_ADMIN_PASSWORD", "").strip()

    if email and password:
        # Non-zero means an admin already exists; not fatal on restarts
        run_command(
            [
                sys.executable, "scripts/create_super_admin.py",
                "--email", email,
                "--password", password,
                "--first-name", os.environ.get("SUPER_ADMIN_FIRST_NAME", "Super").strip(),
                "--last-name", os.environ.get("SUPER_ADMIN_LAST_NAME", "Admin").strip(),
            ],
            "Creating super admin",
        )
    else:
        print("\nSkipping super admin creation (SUPER_ADMIN_EMAIL/PASSWORD not set)")

    port = os.environ.get("PORT", "8000")
    workers = os.environ.get("WEB_CONCURRENCY", "1")
    print(f"\n=== Starting uvicorn on port {port} ({workers} worker(s)) ===\n")

    os.execvp("uvicorn", [
        "uvicorn",
        "schoolsync.main:app",
        "--host", "0.0.0.0",
        "--port", port,
        "--workers", workers,
    ])


if __name__ == "__main__":
    main()
