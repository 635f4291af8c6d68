# routesync/common/util.py
from __future__ import annotations
import re, time

SUBNET_SUFFIX = re.compile(r"/\d{1,3}$")

def human_ts(ts: float) -> str:
    if not ts:
        return "-"
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(ts))

def strip_prefix(addr: str | None) -> str | None:
    """
    Drop a trailing /NN subnet suffix: "10.0.0.5/24" -> "10.0.0.5".
    """
    if addr is None:
        return None
    return SUBNET_SUFFIX.sub("", addr.strip())

def tail_file(path: str, lines: int = 400) -> str:
    """
    Return last N lines of a file. Safe for small/medium logs.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as f:
            data = f.readlines()
        return "".join(data[-lines:])
    except OSError as e:
        return f"cannot read log {path}: {e}"
