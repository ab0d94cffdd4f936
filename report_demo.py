#!/usr/bin/env python3
"""
Urban Feedback - Report a Photo
Runs the full report pipeline on a photo file and prints the result.

Usage: python report_demo.py PHOTO [LAT LNG] [DESCRIPTION]
"""
import asyncio
import os
import sys

# Add src to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from src.core.logging import setup_logging
from src.crowdsource.capture import FileCapture
from src.crowdsource.classifier import SimulatedClassifier
from src.crowdsource.report_store import ReportStore
from src.location.capabilities import PermissionState, ReportedLocation
from src.location.geocoder import ReverseGeocoder
from src.location.locator import LocationStage
from src.pipeline.finalizer import SubmissionFinalizer
from src.pipeline.orchestrator import Aborted, PipelineOrchestrator


async def run(photo_path, latitude, longitude, description):
    store = ReportStore()

    # Without coordinates the run degrades to "location undetermined"
    device = ReportedLocation(
        permission=PermissionState.GRANTED,
        latitude=latitude,
        longitude=longitude,
    )

    async with ReverseGeocoder() as geocoder:
        orchestrator = PipelineOrchestrator(
            classifier=SimulatedClassifier(),
            location=LocationStage(permission=device, position=device),
            geocoder=geocoder,
            on_progress=lambda stage, label: print(f"  ... {label}"),
        )

        result = await orchestrator.capture_and_run(FileCapture(photo_path))

    if result is None:
        print(f"ERROR: could not read photo {photo_path}")
        return 1

    if isinstance(result, Aborted):
        print(f"\nRun aborted ({result.reason.value})")
        if orchestrator.last_notice:
            print(f"  {orchestrator.last_notice.message}")
        return 1

    finalizer = SubmissionFinalizer(orchestrator, store, reset_delay=0)
    report = finalizer.submit(description)
    await asyncio.sleep(0)

    print(f"\nPipeline result: {result.kind.value}")
    print(f"\nReport {report.id}:")
    print(f"  - Category:    {report.category.label} ({report.category.confidence:.0%})")
    print(f"  - Address:     {report.address}")
    print(f"  - Description: {report.description or '-'}")
    print(f"  - Status:      {report.status.display_label}")
    print(f"\nReports in store: {len(store)}")
    return 0


def main():
    if len(sys.argv) < 2:
        print(__doc__.strip())
        sys.exit(2)

    photo_path = sys.argv[1]
    latitude = longitude = None
    description = ""

    if len(sys.argv) >= 4:
        latitude = float(sys.argv[2])
        longitude = float(sys.argv[3])
    if len(sys.argv) >= 5:
        description = " ".join(sys.argv[4:])

    print("=" * 60)
    print("Urban Feedback - New Report")
    print("=" * 60)
    print(f"\nPhoto: {photo_path}")

    setup_logging(level="WARNING")

    sys.exit(asyncio.run(run(photo_path, latitude, longitude, description)))


if __name__ == "__main__":
    main()
