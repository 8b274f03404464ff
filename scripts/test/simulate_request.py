# scripts/test/simulate_request.py
"""Send test requests to a running backend: validate, entry, exit, history, open, close."""

import argparse
import json
import requests
from datetime import date

BACKEND_URL = "http://localhost:3000/api"

SAMPLE_VEHICLE = {
    "plateNumber": "ABC123",
    "firstName": "Juan",
    "middleName": "",
    "lastName": "Dela Cruz",
    "contactNumber": "09170000000",
    "userType": "student",
    "vehicleType": "car",
    "vehicleColor": "red",
}


def send(method: str, path: str, url: str, api_key: str = None, **kwargs):
    headers = {"X-API-Key": api_key} if api_key else {}
    resp = requests.request(method, f"{url}{path}", headers=headers, timeout=60, **kwargs)
    print(f"{method} {path} → HTTP {resp.status_code}")
    try:
        print(json.dumps(resp.json(), indent=2))
    except ValueError:
        print(resp.text)
    return resp


def main():
    parser = argparse.ArgumentParser(description="ParkGate request simulator")
    parser.add_argument("action", choices=["validate", "entry", "exit", "history", "open", "close", "cycle"])
    parser.add_argument("--url", default=BACKEND_URL)
    parser.add_argument("--plate", default=SAMPLE_VEHICLE["plateNumber"])
    parser.add_argument("--doc", default="DOC-123", help="Driver document id for validate")
    parser.add_argument("--type", default=SAMPLE_VEHICLE["vehicleType"], help="Vehicle type")
    parser.add_argument("--date", default=str(date.today()))
    parser.add_argument("--api-key")
    args = parser.parse_args()

    vehicle = {**SAMPLE_VEHICLE, "plateNumber": args.plate, "vehicleType": args.type}
    key = args.api_key

    if args.action == "validate":
        send("POST", "/validate", args.url, key, json={"documentId": args.doc})
    elif args.action == "entry":
        send("POST", "/vehicle-entry", args.url, key, json={"data": vehicle})
    elif args.action == "exit":
        send("POST", "/vehicle-exit", args.url, key, json={"plateNumber": args.plate})
    elif args.action == "history":
        send("GET", "/vehicle-history", args.url, key, params={"date": args.date})
    elif args.action in ("open", "close"):
        send("GET", f"/{args.action}", args.url, key)
    else:
        # Full visit: enter, open, close, exit, open, close, history
        send("POST", "/vehicle-entry", args.url, key, json={"data": vehicle})
        send("GET", "/open", args.url, key)
        send("GET", "/close", args.url, key)
        send("POST", "/vehicle-exit", args.url, key, json={"plateNumber": args.plate})
        send("GET", "/open", args.url, key)
        send("GET", "/close", args.url, key)
        send("GET", "/vehicle-history", args.url, key, params={"date": args.date})


if __name__ == "__main__":
    main()
