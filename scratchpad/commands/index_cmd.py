"""Index maintenance commands - status, forced refresh and dirty marking."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from rich.console import Console
from rich.table import Table

from . import print_error
from ..errors import ConfigurationError, ScratchpadError
from ..index.coordinator import IndexCoordinator
from ..index.index import Index


def _format_ns(value: int | None) -> str:
    if not value:
        return "-"
    return datetime.fromtimestamp(value / 1e9, tz=timezone.utc).isoformat(timespec="milliseconds")


def run_status(index: Index, coordinator: IndexCoordinator, output_json: bool = False) -> int:
    """Report libraries, document counts and snapshot timestamps."""
    store = coordinator.store
    snapshot = store.describe() if store is not None else None
    libraries = [
        {
            "identifier": library.identifier,
            "name": library.display_name,
            "paths": list(library.paths),
            "documents": len(index.documents_in_library(library.identifier)),
        }
        for library in index.libraries()
    ]

    if output_json:
        payload = {
            "documents": len(index),
            "refresh_timestamp": index.refresh_timestamp,
            "libraries": libraries,
            "snapshot": snapshot,
        }
        print(json.dumps(payload, indent=2))
        return 0

    console = Console()
    table = Table(title="Libraries")
    table.add_column("Identifier")
    table.add_column("Name")
    table.add_column("Documents", justify="right")
    table.add_column("Paths")
    for entry in libraries:
        table.add_row(entry["identifier"], entry["name"], str(entry["documents"]), "\n".join(entry["paths"]))
    console.print(table)

    console.print(f"Documents: {len(index)}")
    console.print(f"Refreshed: {_format_ns(index.refresh_timestamp)}")
    if snapshot is None:
        console.print("Snapshot: [dim]disabled[/dim]")
    else:
        console.print(f"Snapshot: {snapshot['path']} ({_format_ns(snapshot['timestamp'])})")
        console.print(f"Dirty marker: {snapshot['dirty_path']} ({_format_ns(snapshot['dirty_timestamp'])})")
    return 0


def run_refresh(index: Index, coordinator: IndexCoordinator) -> int:
    """Walk all libraries now and rewrite the snapshot."""
    console = Console(stderr=True)

    try:
        count = coordinator.rebuild(index)
    except ScratchpadError as e:
        print_error(console, e)
        return 1

    console.print(f"[green]Index rebuilt[/green]: {count} documents")
    return 0


def run_mark_dirty(coordinator: IndexCoordinator) -> int:
    """Touch the dirty marker so every process re-walks on its next load."""
    console = Console(stderr=True)

    if coordinator.store is None or not coordinator.settings.dirty_enabled:
        error = ConfigurationError("No snapshot is configured or dirty marking is disabled", code="dirty-disabled")
        print_error(console, error)
        return 1

    coordinator.store.mark_dirty()
    console.print(f"Marked dirty: {coordinator.store.dirty_path}")
    return 0
