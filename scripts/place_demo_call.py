#!/usr/bin/env python3
"""
Place a demo call through a running backend and follow it to completion,
the same way the clinic UI does: start the call, poll its status, then book
the follow-up appointment.

Run: python scripts/place_demo_call.py --phone +15550100 --patient-id abc123xyz
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import aiohttp
from dotenv import load_dotenv
from loguru import logger

from medischedule.booking import wait_for_completion
from medischedule.config import Settings
from medischedule.schemas import CallRecord

load_dotenv()


async def main(args):
    api_base = args.api_base.rstrip("/")

    async with aiohttp.ClientSession() as session:
        async with session.post(
            f"{api_base}/api/demo/vapi-call",
            json={"phoneNumber": args.phone, "consentType": args.consent_type, "customerId": args.patient_id},
        ) as response:
            data = await response.json()
            if response.status != 200:
                logger.error(f"Failed to start call: {data.get('error')}")
                return 1

        call_id = data["callId"]
        logger.info(f"Call started: {call_id}")

        async def read_status(cid: str):
            async with session.get(f"{api_base}/api/demo/call/{cid}") as resp:
                if resp.status == 404:
                    return None
                return CallRecord.model_validate(await resp.json())

        seen = 0

        def show(record: CallRecord):
            nonlocal seen
            for line in record.transcript[seen:]:
                print(line)
            seen = len(record.transcript)

        try:
            record = await wait_for_completion(
                read_status, call_id, interval=args.interval, timeout=args.timeout, on_update=show
            )
        except asyncio.TimeoutError:
            logger.error(f"Call {call_id} did not complete within {args.timeout}s")
            return 1

        if record is None:
            logger.error(f"Call {call_id} disappeared from the registry")
            return 1

        logger.info(f"Call completed - consent={record.consent.value}")

        if not args.patient_id:
            return 0

        async with session.post(
            f"{api_base}/api/demo/call/{call_id}/book",
            json={"patientId": args.patient_id},
        ) as response:
            data = await response.json()
            if response.status != 200:
                logger.error(f"Booking failed: {data.get('error')}")
                return 1

        appointment = data["appointment"]
        print("=" * 60)
        print(f"Booked {appointment['type']} on {appointment['date']}")
        print(f"Summary: {appointment['aiSummary']}")
        return 0


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Place a demo Vapi call and book the follow-up")
    parser.add_argument("--phone", required=True, help="Destination phone number")
    parser.add_argument("--patient-id", help="Patient to book the follow-up for")
    parser.add_argument("--consent-type", default="marketing")
    parser.add_argument("--api-base", default=os.getenv("API_BASE", "http://localhost:8000"))
    parser.add_argument("--interval", type=float, default=settings.poll_interval_seconds)
    parser.add_argument("--timeout", type=float, default=600.0)
    return parser


if __name__ == "__main__":
    parser = build_parser(Settings.from_env())
    sys.exit(asyncio.run(main(parser.parse_args())))
