#!/usr/bin/env python3
"""Helper script to check and create the .env file for the backend configuration."""

import os
import sys
from pathlib import Path

TEMPLATE = """# Supabase configuration (required)
# Get these from: https://supabase.com/dashboard -> Your Project -> Settings -> API
PESTOPS_SUPABASE_URL=https://your-project-id.supabase.co
PESTOPS_SUPABASE_KEY=your-service-role-key-here

# Role claims allowed to call admin endpoints (JSON array or comma-separated)
PESTOPS_ADMIN_ROLES=admin

# API configuration
PESTOPS_API_PREFIX=/api
PESTOPS_DATA_ROOT=./data

# Google Maps (route sequencing and place search)
PESTOPS_GOOGLE_MAPS_API_KEY=

# Resend (transactional e-mail)
PESTOPS_RESEND_API_KEY=
PESTOPS_EMAIL_SENDER=Pest Control <info@example.com>
"""

SECRET_KEYS = ("PESTOPS_SUPABASE_KEY", "PESTOPS_GOOGLE_MAPS_API_KEY", "PESTOPS_RESEND_API_KEY")


def _mask(line: str) -> str:
    name, sep, value = line.partition("=")
    if sep and name.strip() in SECRET_KEYS and len(value.strip()) > 20:
        value = value.strip()
        return f"{name}={value[:20]}...{value[-10:]}"
    return line


def main() -> None:
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Backend Environment Variables Checker")
    print("=" * 60)
    print()

    if not env_file.exists():
        print(f"No .env file found at: {env_file}")
        env_file.write_text(TEMPLATE, encoding="utf-8")
        print(f"Created template .env file at: {env_file}")
        print("Please edit .env and add your credentials.")
        return

    print(f"Found .env file at: {env_file}")
    print("-" * 60)
    for line in env_file.read_text(encoding="utf-8").splitlines():
        print(_mask(line))
    print("-" * 60)
    print()

    for name in ("PESTOPS_SUPABASE_URL", "PESTOPS_SUPABASE_KEY"):
        status = "set in environment" if os.getenv(name) else "not in environment (may come from .env)"
        print(f"{name}: {status}")
    print()

    sys.path.insert(0, str(project_root / "src"))
    try:
        from pestops.config import settings
    except Exception as exc:
        print(f"Error loading config: {exc}")
        return

    checks = {
        "Supabase": bool(settings.supabase_url and settings.supabase_key),
        "Google Maps": bool(settings.google_maps_api_key),
        "Resend": bool(settings.resend_api_key),
    }
    for name, configured in checks.items():
        print(f"{name}: {'configured' if configured else 'NOT configured'}")
    print(f"Admin roles: {', '.join(settings.admin_roles)}")


if __name__ == "__main__":
    main()
