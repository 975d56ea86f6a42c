#!/usr/bin/env python3
"""
Create demo data for the disposal & auction workflow.

Run with backend up: uvicorn app.main:app --reload (from backend dir)

Usage:
  python scripts/seed_disposal_demo.py
  python scripts/seed_disposal_demo.py --base http://localhost:8000

Creates a vehicle, a disposal request, approves it, opens an auction with a
reserve, places two bids and closes it. Writes scripts/disposal_demo.json
with the created IDs.
"""

import json
import os
import sys
import time
import urllib.error
import urllib.request
from datetime import date, timedelta
from pathlib import Path

BASE_URL = os.environ.get("API_BASE", "http://localhost:8000").rstrip("/")


def request(method: str, path: str, body: dict | None = None) -> dict:
    url = f"{BASE_URL}{path}"
    data = None
    if body is not None:
        data = json.dumps(body).encode("utf-8")
    headers = {"X-Persona": "Demo Seeder"}
    if data:
        headers["Content-Type"] = "application/json"
    req = urllib.request.Request(url, data=data, method=method, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=30) as resp:
            return json.loads(resp.read().decode("utf-8"))
    except urllib.error.HTTPError as e:
        err_body = e.read().decode("utf-8") if e.fp else ""
        raise SystemExit(f"HTTP {e.code} {path}: {err_body}")
    except urllib.error.URLError as e:
        raise SystemExit(f"Request failed (is the backend running at {BASE_URL}?): {e.reason}")


def main() -> None:
    global BASE_URL
    if "--base" in sys.argv:
        idx = sys.argv.index("--base")
        if idx + 1 < len(sys.argv):
            BASE_URL = sys.argv[idx + 1].rstrip("/")

    vehicle = request("POST", "/vehicles", {
        "registration_number": f"DEMO-{int(time.time())}",
        "make": "Toyota",
        "model": "Hilux",
    })
    print(f"Vehicle {vehicle['registration_number']} (id={vehicle['id']})")

    disposal = request("POST", "/disposal-requests", {
        "vehicle_id": vehicle["id"],
        "disposal_reason": "end_of_life",
        "recommended_method": "auction",
        "condition_rating": "fair",
        "current_mileage": 312000,
        "estimated_value": 50000,
        "requested_by": "Fleet Manager",
    })
    print(f"Disposal request {disposal['disposal_number']} (id={disposal['id']})")
    request("POST", f"/disposal-requests/{disposal['id']}/approve", {"approved_by": "Administration"})

    start = date.today()
    auction = request("POST", f"/disposal-requests/{disposal['id']}/auctions", {
        "auction_type": "public",
        "starting_price": 35000,
        "reserve_price": 42500,
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(days=8)).isoformat(),
    })
    request("POST", f"/auctions/{auction['id']}/start")
    bids = [
        request("POST", f"/auctions/{auction['id']}/bids", {
            "bidder_name": name, "bidder_contact": contact, "bid_amount": amount,
        })
        for name, contact, amount in (
            ("Kofi Motors", "+233 20 000 0001", 40000),
            ("Accra Auto Salvage", "+233 20 000 0002", 45000),
        )
    ]
    closed = request("POST", f"/auctions/{auction['id']}/close")
    print(f"Auction {auction['id']} closed at {closed['winning_bid']:,.2f}")

    out = {
        "base_url": BASE_URL,
        "vehicle_id": vehicle["id"],
        "disposal_id": disposal["id"],
        "auction_id": auction["id"],
        "bid_ids": [b["id"] for b in bids],
    }
    out_path = Path(__file__).resolve().parent / "disposal_demo.json"
    out_path.write_text(json.dumps(out, indent=2))
    print(f"Wrote {out_path}")


if __name__ == "__main__":
    main()
