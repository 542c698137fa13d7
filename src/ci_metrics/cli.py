from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from .config import Settings, get_settings
from .coordinator import DeliveryCoordinator, DeliveryLedger, SubmitOptions, SubmitSummary
from .errors import CiMetricsError
from .transformers import transform_records
from .transport import DatadogTransport
from .utils import find_export_files, load_export

app = typer.Typer(help="Ship CI workflow durations from warehouse exports to Datadog")


async def process_file(path: Path, coordinator: DeliveryCoordinator) -> Optional[SubmitSummary]:
    """Transform and submit one export file; errors are logged, never raised."""
    try:
        logger.info(f"Processing file: {path}")
        rows = load_export(path)
        points, workflow_ids = transform_records(rows)
        summary = await coordinator.submit(points, workflow_ids)
        logger.info(f"Successfully processed metrics from {path}")
        return summary
    except (CiMetricsError, ValueError, OSError) as e:
        logger.error(f"Error processing file {path}: {type(e).__name__}: {e}")
        return None


async def run_files(files: list[Path], settings: Settings, options: SubmitOptions) -> int:
    """Process ``files`` in order; returns how many completed without error."""
    transport = None
    if not options.dry_run:
        transport = DatadogTransport(
            settings.DD_API_KEY, site=settings.DD_SITE, timeout=settings.REQUEST_TIMEOUT
        )

    coordinator = DeliveryCoordinator(
        transport,
        options,
        cache_dir=settings.CACHE_DIR,
        log_dir=settings.LOG_DIR,
        testing=settings.testing,
    )

    ok = 0
    try:
        for path in files:
            if await process_file(path, coordinator) is not None:
                ok += 1
    finally:
        if transport is not None:
            await transport.stop()
    return ok


@app.command("run")
def run(
    data_dir: Optional[Path] = typer.Option(None, "--data-dir", help="Directory of *.json exports"),
    dry_run: Optional[bool] = typer.Option(
        None, "--dry-run/--live", help="Log and record without calling Datadog"
    ),
    batch_size: Optional[int] = typer.Option(None, "--batch-size", min=1, help="Series per request"),
):
    """Submit every export file in the data directory."""
    settings = get_settings()
    options = settings.submit_options(dry_run=dry_run, batch_size=batch_size)
    directory = data_dir or Path(settings.DATA_DIR)

    if options.dry_run:
        logger.warning("Running in DRY RUN mode - no metrics will be submitted to Datadog")

    files = find_export_files(directory)
    if not files:
        logger.info(f"No JSON files found in {directory}")
        return

    logger.info(f"Found {len(files)} JSON file(s) to process")
    try:
        ok = asyncio.run(run_files(files, settings, options))
    except ValueError as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)
    except CiMetricsError as e:
        logger.error(f"Fatal error: {type(e).__name__}: {e}")
        sys.exit(1)

    logger.info(f"Completed processing all files ({ok}/{len(files)} succeeded)")


@app.command("ledger")
def ledger(
    dry_run: bool = typer.Option(False, "--dry-run/--live", help="Inspect the dry-run ledger"),
):
    """Show which ledger file a mode uses and how many workflows it holds."""
    settings = get_settings()
    led = DeliveryLedger.for_mode(
        dry_run=dry_run, testing=settings.testing, cache_dir=settings.CACHE_DIR
    )
    typer.echo(
        json.dumps(
            {
                "namespace": led.namespace.value,
                "path": str(led.path),
                "delivered": len(led.delivered()),
            },
            indent=2,
        )
    )


if __name__ == "__main__":
    app()
