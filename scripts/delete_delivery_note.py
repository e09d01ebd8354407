"""Delete a delivery note through the API after an explicit confirmation.

Usage:
    python scripts/delete_delivery_note.py <delivery-note-id>

Credentials come from OPSCONSOLE_EMAIL / OPSCONSOLE_PASSWORD and the API
base URL from OPSCONSOLE_API (default http://localhost:8000/api/v1).
"""
import asyncio
import os
import sys

import httpx

from opsconsole.orchestration.confirmation_gate import ConfirmationGate, DeliveryNoteSummary

BASE = os.environ.get("OPSCONSOLE_API", "http://localhost:8000/api/v1")
ACKNOWLEDGMENT = "DELETE"


class ApiError(Exception):
    def __init__(self, response: httpx.Response):
        try:
            message = response.json().get("error", response.text)
        except ValueError:
            message = response.text
        super().__init__(f"{response.status_code}: {message}")
        self.status_code = response.status_code


async def login(client: httpx.AsyncClient) -> dict:
    r = await client.post(f"{BASE}/auth/login", json={
        "email": os.environ["OPSCONSOLE_EMAIL"],
        "password": os.environ["OPSCONSOLE_PASSWORD"],
    })
    if r.status_code != 200:
        raise ApiError(r)
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


async def run(note_id: str) -> int:
    async with httpx.AsyncClient(timeout=60) as client:
        headers = await login(client)

        r = await client.get(f"{BASE}/delivery-notes/{note_id}/summary", headers=headers)
        if r.status_code != 200:
            raise ApiError(r)
        summary = DeliveryNoteSummary.from_record(r.json())

        async def delete(note: DeliveryNoteSummary) -> dict:
            response = await client.delete(f"{BASE}/delivery-notes/{note.id}", headers=headers)
            if response.status_code != 200:
                raise ApiError(response)
            return response.json()

        gate = ConfirmationGate(delete)
        gate.open(summary)

        print(f"Delete delivery note {summary.display_number} ({summary.customer_name})?")
        print("This action cannot be undone. It will:")
        for line in gate.warning_lines():
            print(f"  - {line}")

        while gate.is_open:
            answer = input(f"Type {ACKNOWLEDGMENT} to confirm, anything else to cancel: ").strip()
            gate.set_acknowledged(answer == ACKNOWLEDGMENT)
            if not gate.can_submit:
                gate.cancel()
                print("Cancelled; nothing was changed.")
                return 1
            try:
                await gate.confirm()
            except ApiError as e:
                print(f"Failed: {e}")
                if e.status_code == 504:
                    print("The request timed out; check the note before retrying.")
                retry = input("Retry? [y/N] ").strip().lower()
                if retry != "y":
                    gate.cancel()
                    return 1

        result = gate.last_result
        print(f"Deleted {result['delivery_number']}; reversed {result['reversed_count']} movement(s).")
        for item_id, quantity in result["restored"].items():
            print(f"  {item_id}: {quantity:+d}")
        return 0


def main():
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    try:
        sys.exit(asyncio.run(run(sys.argv[1])))
    except ApiError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
