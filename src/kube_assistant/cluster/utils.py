"""Unit helpers for Kubernetes quantities and timestamps."""

from datetime import datetime, timezone
from typing import Optional


def get_age(timestamp: Optional[datetime], now: Optional[datetime] = None) -> str:
    """Render the time since ``timestamp`` the way kubectl does (``42s``, ``5m``, ``3h``, ``12d``)."""
    if timestamp is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    seconds = max(int((now - timestamp).total_seconds()), 0)
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def parse_cpu(cpu: str) -> float:
    """Convert a CPU quantity (``250m``, ``12345678n``, ``2``) to millicores."""
    if cpu.endswith("n"):
        return int(cpu[:-1]) / 1_000_000
    if cpu.endswith("u"):
        return int(cpu[:-1]) / 1_000
    if cpu.endswith("m"):
        return float(cpu[:-1])
    return float(cpu) * 1000


def parse_memory(memory: str) -> float:
    """Convert a memory quantity (``512Ki``, ``256Mi``, ``1Gi``, bytes) to MiB."""
    if memory.endswith("Ki"):
        return int(memory[:-2]) / 1024
    if memory.endswith("Mi"):
        return float(memory[:-2])
    if memory.endswith("Gi"):
        return float(memory[:-2]) * 1024
    return int(memory) / (1024 * 1024)
