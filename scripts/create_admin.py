#!/usr/bin/env python3
# =============================================================================
# scripts/create_admin.py - Create the First Admin Account
# =============================================================================
# Prompts for the admin's email, password, company name and business number
# and calls POST /api/v1/admin/create-admin with the X-Setup-Key header.
#
# Usage:
#   python scripts/create_admin.py
#   python scripts/create_admin.py --api-url https://api.example.com
#
# Prerequisites:
#   - The API must be running
#   - ADMIN_SETUP_KEY must be set (.env file) and match the server's value
# =============================================================================

import argparse
import getpass
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx
from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_URL = "http://localhost:8000"


def prompt(label: str, default: str | None = None) -> str:
    suffix = f" [{default}]" if default else ""
    while True:
        value = input(f"{label}{suffix}: ").strip()
        if value:
            return value
        if default:
            return default
        print(f"  {label} is required")


def prompt_password() -> str:
    while True:
        password = getpass.getpass("Password (min 6 chars): ")
        if len(password) < 6:
            print("  Password must be at least 6 characters")
            continue
        if getpass.getpass("Confirm password: ") != password:
            print("  Passwords do not match")
            continue
        return password


def create_admin(api_url: str, setup_key: str, payload: dict) -> dict:
    """POST the admin account and return the parsed response body."""
    response = httpx.post(
        f"{api_url.rstrip('/')}/api/v1/admin/create-admin",
        json=payload,
        headers={"X-Setup-Key": setup_key},
        timeout=60.0,
    )
    body = response.json()
    if response.status_code >= 400 or not body.get("success"):
        raise RuntimeError(body.get("error") or f"HTTP {response.status_code}")
    return body


def main():
    parser = argparse.ArgumentParser(description="Create a marketplace admin account")
    parser.add_argument("--api-url", default=os.getenv("API_URL", DEFAULT_API_URL))
    args = parser.parse_args()

    setup_key = os.getenv("ADMIN_SETUP_KEY")
    if not setup_key:
        print("ERROR: ADMIN_SETUP_KEY not found in environment")
        print("Please set it in your .env file or environment")
        sys.exit(1)

    print("=" * 60)
    print("Create Admin Account")
    print("=" * 60)
    print()

    payload = {
        "email": prompt("Email"),
        "password": prompt_password(),
        "companyName": prompt("Company name", "관리자"),
        "businessNumber": prompt("Business number", "000-00-00000"),
    }

    try:
        body = create_admin(args.api_url, setup_key, payload)
    except httpx.HTTPError as e:
        print(f"\nERROR: could not reach {args.api_url}: {e}")
        sys.exit(1)
    except RuntimeError as e:
        print(f"\nERROR: {e}")
        sys.exit(1)

    data = body.get("data") or {}
    print()
    print(f"Admin created: {data.get('email', payload['email'])} ({data.get('id', '-')})")


if __name__ == "__main__":
    main()
