#!/usr/bin/env python3
"""Walk a booking through the running API: availability, book, confirm, reschedule, cancel."""
from __future__ import annotations

import argparse
import sys
from datetime import date, timedelta
from typing import Any

import httpx
from httpx import ConnectError


def call(client: httpx.Client, method: str, path: str, **kwargs: Any) -> dict[str, Any] | None:
    resp = client.request(method, path, **kwargs)
    print(f"{method} {path} -> {resp.status_code}")
    body = resp.json() if resp.content else {}
    if resp.status_code >= 400:
        print(f"   errors: {body.get('errors') or body}")
        return None
    return body


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke-test the scheduling API")
    parser.add_argument("--url", default="http://127.0.0.1:8001")
    parser.add_argument("--workshop", default="ws-user-1")
    parser.add_argument("--customer", default="cust-demo")
    args = parser.parse_args()

    customer = {"X-User-Id": args.customer, "X-User-Role": "customer"}
    workshop = {"X-User-Id": args.workshop, "X-User-Role": "workshop"}
    base = "/api/v1/appointments"

    with httpx.Client(base_url=args.url, timeout=10.0) as client:
        try:
            client.get("/health")
        except ConnectError:
            print("Connection refused. Is the FastAPI server running?")
            print("Try: uvicorn repairconnect.main:app --reload --port 8001")
            sys.exit(1)

        availability = call(
            client, "GET", f"{base}/availability", params={"workshopId": args.workshop}, headers=customer
        )
        if not availability or not availability["data"]["nextAvailableSlots"]:
            print("No free slots found; did you run scripts/seed_demo.py?")
            sys.exit(1)
        slot = availability["data"]["nextAvailableSlots"][-1]
        print(f"   booking {slot['date']} {slot['startTime']}")

        created = call(
            client,
            "POST",
            base,
            json={
                "workshopId": args.workshop,
                "quotationId": f"demo-{slot['date']}-{slot['startTime']}",
                "acceptedQuoteId": "demo-accepted",
                "scheduledDate": slot["date"],
                "scheduledStartTime": slot["startTime"],
                "services": ["oil_change", "inspection"],
            },
            headers=customer,
        )
        if not created:
            sys.exit(1)
        appointment_id = created["data"]["id"]

        call(client, "PUT", f"{base}/{appointment_id}", json={"updateType": "status", "status": "confirmed"}, headers=workshop)

        new_day = date.fromisoformat(slot["date"]) + timedelta(days=7)
        call(
            client,
            "PUT",
            f"{base}/{appointment_id}",
            json={"updateType": "reschedule", "newDate": new_day.isoformat(), "newStartTime": "10:00"},
            headers=customer,
        )
        call(client, "DELETE", f"{base}/{appointment_id}", params={"reason": "Smoke test"}, headers=customer)


if __name__ == "__main__":
    main()
