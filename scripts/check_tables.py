"""Supabase table probe.

Checks that the Supabase env vars are present and that every table the
mentor backend writes to answers a one-row select over the REST API,
without going through the Supabase SDK.
"""

import os
import sys

import requests
from dotenv import load_dotenv

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(project_root, "sparkpath_mentor", "src"))

from sparkpath_mentor.record_store import KEY_SCHEMA  # noqa: E402


def main() -> int:
    load_dotenv(".env")
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_KEY")
    prefix = os.getenv("TABLE_PREFIX", "")

    print("SUPABASE_URL:", url)
    print("SUPABASE_SERVICE_KEY (prefix):", key[:12] + "..." if key else None)

    if not url or not key:
        print("Missing SUPABASE_URL or SUPABASE_SERVICE_KEY")
        return 1

    headers = {"apikey": key, "Authorization": f"Bearer {key}"}
    failures = 0

    print("\nTables:")
    for table, key_attrs in KEY_SCHEMA.items():
        name = f"{prefix}{table}"
        select = ",".join(key_attrs)
        try:
            resp = requests.get(
                f"{url.rstrip('/')}/rest/v1/{name}",
                params={"select": select, "limit": 1},
                headers=headers,
                timeout=10,
            )
        except requests.RequestException as exc:
            print(f"  {name}: request failed: {exc}")
            failures += 1
            continue

        if resp.ok:
            print(f"  {name}: ok ({len(resp.json())} row sampled)")
        else:
            print(f"  {name}: HTTP {resp.status_code} {resp.text[:120]}")
            failures += 1

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
