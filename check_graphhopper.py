#!/usr/bin/env python3
"""Verify that the configured GraphHopper server is reachable and can route."""

import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from fleetsim.config import settings
from fleetsim.services.routing import GraphHopperClient, RouteOptions, RouteQueryAdapter, check_health


def main():
    print("=" * 60)
    print("GraphHopper Connection Test")
    print("=" * 60)
    print()

    print("1. Checking GraphHopper configuration...")
    if not settings.graphhopper_base_url:
        print("   [ERROR] GraphHopper base URL is not configured")
        print("   Please set FLEETSIM_GRAPHHOPPER_BASE_URL in your .env file")
        return 1
    print(f"   [OK] Base URL: {settings.graphhopper_base_url}")
    print(f"   [OK] Profile: {settings.graphhopper_profile}")
    print()

    print("2. Testing /info...")
    if not check_health():
        print("   [ERROR] GraphHopper is not responding")
        return 1
    print("   [OK] GraphHopper is healthy and accessible")
    print()

    print("3. Testing a route query...")
    try:
        adapter = RouteQueryAdapter(GraphHopperClient())
        # Pune, India
        candidate = adapter.query([(18.5204, 73.8567), (18.5314, 73.8446)], RouteOptions())
    except Exception as e:
        print(f"   [ERROR] Route query failed: {e}")
        return 1
    print(f"   [OK] {len(candidate.geometry)} points, {candidate.distance_m:.0f} m, {candidate.duration_ms / 1000:.0f} s")
    if candidate.degraded:
        print("   [WARN] Geometry could not be parsed; straight line returned")
    print()

    print("=" * 60)
    print("[SUCCESS] GraphHopper is connected and working!")
    print("=" * 60)
    return 0


if __name__ == "__main__":
    sys.exit(main())
