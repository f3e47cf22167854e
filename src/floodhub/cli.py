#!/usr/bin/env python3
"""Command-line access to the Gyeonggi flood-risk region data."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from floodhub import details, map_assets
from floodhub.recommend import rank_solutions
from floodhub.region_stats import fetch_region_stats
from floodhub.regions import GYEONGGI_CITIES, Region, find_region, search_region

OUTPUT_ROOT = Path.cwd() / 'floodhub_output'


def _resolve_region(key: str) -> Optional[Region]:
    region = find_region(key)
    if region is not None:
        return region
    try:
        match = search_region(key)
    except ValueError:
        return None
    return match[0] if match else None


def _fmt(value) -> str:
    return '—' if value is None else str(value)


def cmd_regions(args: argparse.Namespace) -> int:
    for region in GYEONGGI_CITIES:
        districts = ', '.join(d.name for d in region.districts)
        print(f"{region.code}  {region.name:<6} {region.id:<12} {districts}")
    return 0


def cmd_stats(args: argparse.Namespace, region: Region) -> int:
    stats = fetch_region_stats(region.name, region.code)
    if stats.error:
        print(f"⚠️  Stats unavailable for {region.name}: {stats.error}")
        return 0
    level = stats.danger_level
    print(f"{region.name} ({region.code})")
    print(f"  flood danger index : {_fmt(stats.flood_danger_idx)} [{level.label}]")
    print(f"  flood danger rank  : {_fmt(stats.flood_danger_rank)}")
    print(f"  flood traces       : {_fmt(stats.flood_trace_count)}")
    print(f"  weak facilities    : {_fmt(stats.weak_facility_count)}")
    print('  recommended solutions:')
    for rec in rank_solutions(stats):
        marker = '★' if rec.is_priority else ' '
        print(f"   {marker} {rec.title:<20} score {rec.score}")
    return 0


def cmd_traces(args: argparse.Namespace, region: Region) -> int:
    traces = details.fetch_trace_details(region.code)
    plottable = sum(1 for t in traces if t.position is not None)
    print(f"{len(traces)} flood traces in {region.name} ({plottable} plottable)")
    if args.csv:
        map_assets.write_details_csv(traces, args.csv)
    return 0


def cmd_facilities(args: argparse.Namespace, region: Region) -> int:
    facilities = details.fetch_facility_details(region.code)
    print(f"{len(facilities)} flood-vulnerable facilities in {region.name}")
    for facility in facilities[: args.limit]:
        reasons = '; '.join(facility.vulnerability_reasons) or '-'
        print(f"  [{facility.risk_level or '?'}] {facility.facility_name} · {facility.facility_type} · {reasons}")
    if args.csv:
        map_assets.write_details_csv(facilities, args.csv)
    return 0


def cmd_map(args: argparse.Namespace, region: Region) -> int:
    stats = fetch_region_stats(region.name, region.code)
    traces = details.fetch_trace_details(region.code)
    facilities = details.fetch_facility_details(region.code)
    payload = map_assets.build_map_payload(region, stats, traces, facilities, layer_id=args.layer)
    map_assets.write_map_payload(payload, args.output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Flood-risk statistics and details for Gyeonggi-do regions.')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('regions', help='List the 31 cities and counties')

    stats = sub.add_parser('stats', help='Danger index, counts and ranked solutions for a region')
    stats.add_argument('region', help='Region name, code, id or search keyword')

    traces = sub.add_parser('traces', help='Flood trace details for a region')
    traces.add_argument('region')
    traces.add_argument('--csv', type=Path, help='Write the details to this CSV file')

    facilities = sub.add_parser('facilities', help='Flood-vulnerable facility details for a region')
    facilities.add_argument('region')
    facilities.add_argument('--csv', type=Path, help='Write the details to this CSV file')
    facilities.add_argument('--limit', type=int, default=20, help='Rows to print (default: 20)')

    map_cmd = sub.add_parser('map', help='Write the marker payload for the map viewer')
    map_cmd.add_argument('region')
    map_cmd.add_argument('--output', type=Path, default=OUTPUT_ROOT, help='Output directory')
    map_cmd.add_argument('--layer', default='flood-trace', help='Active WMS layer id')
    return parser


REGION_COMMANDS = {
    'stats': cmd_stats,
    'traces': cmd_traces,
    'facilities': cmd_facilities,
    'map': cmd_map,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.command == 'regions':
        return cmd_regions(args)
    region = _resolve_region(args.region)
    if region is None:
        print(f"Unknown region '{args.region}'. Run 'floodhub regions' for the list.", file=sys.stderr)
        return 1
    return REGION_COMMANDS[args.command](args, region)


if __name__ == '__main__':
    sys.exit(main())
