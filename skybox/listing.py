"""
Rendering of recordings for the `skybox ls` command.

Key components:
- write_csv(): One CSV row per recording, with a header row
- write_json(): A single JSON array
- build_table(): A rich Table, short or long form
"""

import csv
import json
from typing import IO, Iterable, List

from rich.table import Table

from .models import Recording

CSV_COLUMNS = [
    "id",
    "title",
    "description",
    "viewed",
    "recorded_starttime",
    "recorded_duration",
    "channel_name",
    "series_id",
    "category",
    "resource",
]


def format_duration(seconds: int) -> str:
    hours, rest = divmod(seconds, 3600)
    mins, secs = divmod(rest, 60)
    return f"{hours}:{mins:02d}:{secs:02d}"


def write_csv(recordings: Iterable[Recording], stream: IO[str]) -> int:
    """Write recordings as CSV and return how many rows were written."""
    writer = csv.DictWriter(stream, fieldnames=CSV_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    count = 0
    for recording in recordings:
        row = recording.model_dump(mode="json")
        row["series_id"] = row["series_id"] or ""
        writer.writerow(row)
        count += 1
    return count


def write_json(recordings: Iterable[Recording], stream: IO[str]) -> int:
    rows: List[dict] = [r.model_dump(mode="json") for r in recordings]
    json.dump(rows, stream, indent=2, ensure_ascii=False)
    stream.write("\n")
    return len(rows)


def build_table(recordings: Iterable[Recording], long: bool = False) -> Table:
    """Build a table of recordings; `long` adds the less commonly needed columns."""
    table = Table(title="Recordings")
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Channel", style="magenta")
    table.add_column("Recorded", no_wrap=True)
    table.add_column("Duration", justify="right")
    if long:
        table.add_column("Viewed")
        table.add_column("Category")
        table.add_column("Series")
        table.add_column("Resource", style="dim")
        table.add_column("Description", style="dim")

    for r in recordings:
        row = [
            r.id,
            r.title,
            r.channel_name,
            r.recorded_starttime.strftime("%Y-%m-%d %H:%M"),
            format_duration(r.recorded_duration),
        ]
        if long:
            row += [
                "yes" if r.viewed else "no",
                r.category.value,
                r.series_id or "",
                r.resource,
                r.description,
            ]
        table.add_row(*row)
    return table
