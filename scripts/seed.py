#!/usr/bin/env python3
# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors
"""Seed a tenant with the built-in relationship types and SKU templates via the REST API.

Usage:
    python scripts/seed.py --tenant acme                      # defaults to http://localhost:8000
    python scripts/seed.py --tenant acme --base-url https://skugraph.example.com
    SKUGRAPH_SEED_TENANT=acme python scripts/seed.py
"""

from __future__ import annotations

import argparse
import os
import sys

import httpx

from skugraph.services.catalog import BUILTIN_SKU_TEMPLATES

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TENANT = os.environ.get("SKUGRAPH_SEED_TENANT")

TIMEOUT = 30.0

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def api(base: str) -> str:
    return f"{base}/v1"


def post(
    client: httpx.Client,
    url: str,
    json: dict | None = None,
    *,
    tenant: str | None = None,
    tolerate_conflict: bool = False,
) -> dict | list | None:
    headers = {}
    if tenant:
        headers["X-Tenant-ID"] = tenant
    r = client.post(url, json=json, headers=headers, timeout=TIMEOUT)
    if r.status_code == 409 and tolerate_conflict:
        return None
    if r.status_code >= 400:
        print(f"  ERROR {r.status_code}: {r.text[:200]}", file=sys.stderr)
        r.raise_for_status()
    return r.json()


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


def seed_relationship_types(client: httpx.Client, base: str) -> None:
    print("Installing built-in relationship types...")
    installed = post(client, f"{api(base)}/relationship-types/builtin") or []
    for name in installed:
        print(f"  + {name}")
    if not installed:
        print("  (all present)")


def seed_templates(client: httpx.Client, base: str, tenant: str) -> None:
    print(f"Creating SKU templates for tenant {tenant}...")
    for template in BUILTIN_SKU_TEMPLATES:
        created = post(
            client,
            f"{api(base)}/sku/templates",
            json=template.model_dump(mode="json"),
            tenant=tenant,
            tolerate_conflict=True,
        )
        if created is None:
            print(f"  = {template.name} (exists)")
        else:
            print(f"  + {template.name} -> {created['id']}")


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--base-url", default=DEFAULT_BASE_URL)
    parser.add_argument("--tenant", default=DEFAULT_TENANT)
    args = parser.parse_args()
    if not args.tenant:
        parser.error("--tenant (or SKUGRAPH_SEED_TENANT) is required")

    base = args.base_url.rstrip("/")
    with httpx.Client() as client:
        seed_relationship_types(client, base)
        seed_templates(client, base, args.tenant)
    print("Done.")


if __name__ == "__main__":
    main()
