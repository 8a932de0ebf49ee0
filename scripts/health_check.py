#!/usr/bin/env python3
"""Validate dependent check configuration and test GitHub connectivity."""

import asyncio
import shutil
import sys

from dotenv import load_dotenv

from dependent_check.github.client import GitHubClient
from dependent_check.settings import CheckSettings


async def main() -> int:
    load_dotenv()
    print("Loading settings...")
    try:
        settings = CheckSettings()
    except Exception as e:
        print(f"FAIL: Could not load settings: {e}")
        return 1

    print(f"  DEPCHECK_ORG: {settings.org}")
    print(f"  DEPCHECK_THIS_REPO: {settings.this_repo}")
    print(f"  DEPCHECK_CANONICAL_SOURCE: {settings.canonical_source}")
    print(f"  DEPCHECK_DEPENDENTS: {', '.join(settings.dependents)}")
    if settings.github_token:
        print(f"  DEPCHECK_GITHUB_TOKEN: {'*' * 8}...{settings.github_token[-4:]}")
    else:
        print("  DEPCHECK_GITHUB_TOKEN: not set (anonymous, low rate limit)")

    print("\nLooking for external tools...")
    missing = [tool for tool in ("git", "cargo", "diener") if shutil.which(tool) is None]
    for tool in missing:
        print(f"  WARN: {tool} not found on PATH")
    if not missing:
        print("  OK: git, cargo and diener found")

    print("\nTesting connectivity...")
    client = GitHubClient(
        base_url=settings.github_api_url,
        token=settings.github_token,
        timeout=settings.timeout,
    )

    try:
        for repo in [settings.this_repo, *settings.dependents]:
            data = await client.get_repository(settings.org, repo)
            print(f"  OK: {data.get('full_name')} (default branch {data.get('default_branch')})")
        return 0
    except Exception as e:
        print(f"  FAIL: {e}")
        return 1
    finally:
        await client.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
