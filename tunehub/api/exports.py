"""
Text formats produced by the export endpoints: M3U playlists and CSV play statistics.
"""

from __future__ import annotations

import csv
import io
from typing import Iterable, Mapping, Optional

STATS_CSV_HEADER = ["Title", "Artist", "Genre", "Play Count", "Total Minutes"]


# PUBLIC_INTERFACE
def round_minutes(seconds: Optional[int]) -> int:
    """Whole minutes, rounding halves up."""
    return int((int(seconds or 0) + 30) // 60)


# PUBLIC_INTERFACE
def build_m3u(playlist_name: str, tracks: Iterable[Mapping]) -> str:
    """
    Render an extended M3U playlist.

    Each track mapping needs `duration`, `artist_name`, `title` and `file_url`;
    tracks are written in the order given.
    """
    lines = ["#EXTM3U", f"#PLAYLIST:{playlist_name}", ""]
    for track in tracks:
        lines.append(f"#EXTINF:{track['duration']},{track['artist_name']} - {track['title']}")
        lines.append(track["file_url"])
        lines.append("")
    return "\n".join(lines) + "\n"


# PUBLIC_INTERFACE
def build_stats_csv(rows: Iterable[Mapping]) -> str:
    """Render per-song play statistics; rows need title, artist_name, genre, play_count, total_seconds."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    buffer.write(",".join(STATS_CSV_HEADER) + "\n")
    for row in rows:
        writer.writerow(
            [
                row["title"],
                row["artist_name"],
                row["genre"] or "N/A",
                int(row["play_count"]),
                round_minutes(row["total_seconds"]),
            ]
        )
    return buffer.getvalue()


# PUBLIC_INTERFACE
def attachment_filename(name: str, extension: str) -> str:
    """A header-safe download filename derived from a user-supplied name."""
    safe = "".join(ch if ch.isalnum() or ch in " ._-" else "_" for ch in name).strip() or "export"
    return f"{safe}.{extension}"
