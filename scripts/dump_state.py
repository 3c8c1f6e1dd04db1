#!/usr/bin/env python3
"""Dump the state held in a pylaundry storage directory.

Opens the engine on a storage directory, then prints every collection
together with per-tenant statistics.

Usage
-----
::

    export LAUNDRY_STORAGE_DIR=/var/lib/laundry
    python scripts/dump_state.py --tenant tenant-1

Options::

    --storage-dir DIR    Storage directory (default: $LAUNDRY_STORAGE_DIR)
    --tenant ID          Only show records and stats for this tenant
    --json               Output as machine-readable JSON
    --backup FILE        Write a backup document to FILE and exit
    --output FILE        Write output to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pylaundry import EngineConfig, LaundryEngine  # noqa: E402
from pylaundry._redact import redact_for_log  # noqa: E402


def _records(models: list[Any], tenant: str | None) -> list[dict[str, Any]]:
    rows = [m.model_dump(mode="json", by_alias=True) for m in models]
    if tenant is None:
        return rows
    # Inventory items without a tenant belong to every tenant.
    return [row for row in rows if row.get("tenantId") in (tenant, None)]


def _tenants(engine: LaundryEngine) -> list[str]:
    found = {o.tenant_id for o in engine.orders} | {d.tenant_id for d in engine.drivers}
    return sorted(t for t in found if t)


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Dump the orders, inventory, drivers and routes held in a storage directory",
    )
    parser.add_argument("--storage-dir", help="Storage directory (default: $LAUNDRY_STORAGE_DIR)")
    parser.add_argument("--tenant", help="Only show records and stats for this tenant")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--backup", help="Write a backup document to FILE and exit")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--show-pii", action="store_true", help="Do not mask phone numbers, emails and addresses")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {}
    if args.storage_dir:
        overrides["storage_dir"] = Path(args.storage_dir)
    config = EngineConfig.from_env(**overrides)
    if config.storage_dir is None:
        parser.error("no storage directory: pass --storage-dir or set LAUNDRY_STORAGE_DIR")

    async with LaundryEngine(config) as engine:
        if args.backup:
            Path(args.backup).write_text(await engine.create_backup(), encoding="utf-8")
            print(f"Backup written to {args.backup}", file=sys.stderr)
            return

        result: dict[str, Any] = {
            "orders": _records(engine.orders, args.tenant),
            "inventory": _records(engine.inventory, args.tenant),
            "drivers": _records(engine.drivers, args.tenant),
            "routes": _records(engine.routes, args.tenant),
            "stats": {},
        }
        for tenant in [args.tenant] if args.tenant else _tenants(engine):
            result["stats"][tenant] = {
                "orders": engine.get_order_stats(tenant).model_dump(),
                "drivers": engine.get_driver_stats(tenant).model_dump(),
                "routes": engine.get_route_stats(tenant).model_dump(),
                "inventory": engine.get_inventory_stats(tenant).model_dump(),
                "low_stock": [item.name for item in engine.get_low_stock_items(tenant)],
            }

    if not args.show_pii:
        result = redact_for_log(result, max_string=10_000)

    if args.json_mode or args.output:
        payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
        return

    for key in ("orders", "inventory", "drivers", "routes"):
        rows = result[key]
        print(f"── {key} ({len(rows)}) ──")
        for row in rows:
            print(f"  {row.get('id', '?')}: {json.dumps(row, default=str, ensure_ascii=False)}")
    for tenant, stats in result["stats"].items():
        print(f"── stats: {tenant} ──")
        for section, values in stats.items():
            print(f"  {section}: {values}")


if __name__ == "__main__":
    asyncio.run(main())
