#!/usr/bin/env python3
"""Smoke check for a running cid_api server (python cid_api.py, or gunicorn)."""

import argparse
import time

import requests

API_URL = "http://localhost:5000"

SAMPLE_CIDS = [
    "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG",
    "bafybeigdyrzt5sfp7udm7hu76uh7y26nf3efuylqabf3oclgtqy55fbzdi",
    "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG",  # duplicate, reported once
    "invalid-cid-format",  # This one is rejected
]


def check_batch_api(api_url):
    """Decode a handful of CIDs through the batch endpoint."""
    print(f"Testing batch decode with {len(SAMPLE_CIDS)} CIDs...")

    start_time = time.time()
    response = requests.post(
        f"{api_url}/cids/batch",
        json={"cids": SAMPLE_CIDS},
        headers={"Content-Type": "application/json"},
        timeout=30,
    )
    elapsed = time.time() - start_time

    print(f"\nResponse Status: {response.status_code}")
    print(f"Response Time: {elapsed:.3f} seconds")

    if response.status_code != 200:
        print(f"Error: {response.text}")
        return False

    data = response.json()
    print(f"\nResults:")
    print(f"  Total Requested: {data['total_requested']}")
    print(f"  Total Valid: {data['total_valid']}")
    print(f"  Total Invalid: {data['total_invalid']}")

    for cid, info in data['results'].items():
        print(f"  {cid}:")
        print(f"    Reserve: {info['reserve']}")
        print(f"    Template: {info['template_url']}")

    for cid, detail in data['invalid'].items():
        print(f"  {cid}: {detail}")

    return True


def check_round_trip(api_url):
    """Decode a CID, then rebuild it from its reserve and template."""
    cid = SAMPLE_CIDS[0]
    info = requests.get(f"{api_url}/cid/{cid}", timeout=30).json()
    rebuilt = requests.get(
        f"{api_url}/reserve/{info['reserve']}",
        params={"template": info["template_url"]},
        timeout=30,
    ).json()
    ok = rebuilt.get("cid") == cid
    print(f"\nRound trip {cid}: {'ok' if ok else 'MISMATCH ' + str(rebuilt)}")
    return ok


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Smoke check a running ARC-19 CID API")
    parser.add_argument("--url", default=API_URL, help=f"API base URL (default {API_URL})")
    args = parser.parse_args()

    print("=== Batch API Check ===\n")
    check_batch_api(args.url)
    check_round_trip(args.url)
