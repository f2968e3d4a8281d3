#!/usr/bin/env python3
"""Post a sample lead to a running lead orchestrator.

Usage:
    # Send the default architect inquiry to a local instance:
    python scripts/send_test_lead.py

    # Pick a canned persona and target another host:
    python scripts/send_test_lead.py --base-url http://localhost:8000 --sample homeowner

    # Custom inquiry:
    python scripts/send_test_lead.py --name "Priya" --email priya@studio.in --phone +919800000000 \
        --inquiry "Need CAD files for engineered wood flooring"
"""

import argparse
import json
import sys

import httpx

SAMPLES = {
    "architect": {
        "name": "Rahul Mehta",
        "email": "rahul@mehta-architects.in",
        "phone": "+919876543210",
        "inquiry": (
            "We are specifying flooring for a 40,000 sq ft commercial project in Bangalore. "
            "Budget is around 2 crore and we need samples this week."
        ),
        "material_type": "Engineered Wood",
    },
    "technical": {
        "name": "Anita Rao",
        "email": "anita@buildright.co.in",
        "phone": "+919812345678",
        "inquiry": "Please send technical specifications and installation guidelines for your SPC range.",
        "material_type": "SPC Flooring",
    },
    "price": {
        "name": "Vikram Singh",
        "email": "vikram.singh@gmail.com",
        "phone": "+919898989898",
        "inquiry": "What is the price per sq ft for laminate flooring for a 1,200 sq ft flat?",
        "material_type": "Laminate",
    },
    "homeowner": {
        "name": "Meera Iyer",
        "email": "meera.iyer@yahoo.com",
        "phone": "+919900112233",
        "inquiry": "Just exploring options for our new home, would love some ideas.",
    },
}


def build_payload(args: argparse.Namespace) -> dict:
    payload = dict(SAMPLES[args.sample])
    for field in ("name", "email", "phone", "inquiry", "material_type"):
        value = getattr(args, field)
        if value:
            payload[field] = value
    return payload


def main() -> int:
    parser = argparse.ArgumentParser(description="Send a test lead to the intake webhook")
    parser.add_argument("--base-url", default="http://localhost:8000", help="Service base URL")
    parser.add_argument("--sample", choices=sorted(SAMPLES), default="architect", help="Canned lead to send")
    parser.add_argument("--name")
    parser.add_argument("--email")
    parser.add_argument("--phone")
    parser.add_argument("--inquiry")
    parser.add_argument("--material-type", dest="material_type")
    parser.add_argument("--timeout", type=float, default=60.0)
    args = parser.parse_args()

    payload = build_payload(args)
    url = f"{args.base_url.rstrip('/')}/api/webhook/lead"
    print(f"POST {url}")
    print(json.dumps(payload, indent=2))

    try:
        resp = httpx.post(url, json=payload, timeout=args.timeout)
    except httpx.HTTPError as e:
        print(f"ERROR: request failed: {e}")
        return 1

    print(f"\n{resp.status_code}")
    try:
        print(json.dumps(resp.json(), indent=2))
    except ValueError:
        print(resp.text)
    return 0 if resp.is_success else 1


if __name__ == "__main__":
    sys.exit(main())
