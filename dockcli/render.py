"""Render engine API payloads as terminal text."""

import re

import pandas as pd

# Default `ps` columns, in display order
PS_COLUMNS = [
    "CONTAINER ID",
    "IMAGE",
    "COMMAND",
    "CREATED",
    "STATUS",
    "PORTS",
    "NAMES",
]

# psFormat/--format placeholders → column they render
FORMAT_FIELDS = {
    "ID": "CONTAINER ID",
    "Image": "IMAGE",
    "Command": "COMMAND",
    "RunningFor": "CREATED",
    "Status": "STATUS",
    "Ports": "PORTS",
    "Names": "NAMES",
}

SHORT_ID_LEN = 12
COMMAND_WIDTH = 20
COLUMN_GAP = 3

_PLACEHOLDER_RE = re.compile(r"\{\{\s*\.(\w+)\s*\}\}")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def human_duration(delta: pd.Timedelta) -> str:
    """Describe a duration the way `docker ps` does ("About an hour", "3 days")."""
    seconds = int(delta.total_seconds())
    if seconds < 1:
        return "Less than a second"
    if seconds < 60:
        return _plural(seconds, "second")
    minutes = seconds // 60
    if minutes == 1:
        return "About a minute"
    if minutes < 46:
        return f"{minutes} minutes"
    hours = round(seconds / 3600)
    if hours == 1:
        return "About an hour"
    if hours < 48:
        return f"{hours} hours"
    if hours < 24 * 7 * 2:
        return f"{hours // 24} days"
    if hours < 24 * 30 * 2:
        return f"{hours // 24 // 7} weeks"
    if hours < 24 * 365 * 2:
        return f"{hours // 24 // 30} months"
    return f"{hours // 24 // 365} years"


def _running_for(created, now: pd.Timestamp) -> str:
    if not created:
        return ""
    started = pd.to_datetime(created, unit="s", utc=True)
    return f"{human_duration(now - started)} ago"


def _format_ports(ports: list[dict] | None) -> str:
    parts = []
    for port in ports or []:
        proto = port.get("Type", "tcp")
        private = f"{port.get('PrivatePort', '')}/{proto}"
        if port.get("PublicPort"):
            ip = port.get("IP") or "0.0.0.0"
            parts.append(f"{ip}:{port['PublicPort']}->{private}")
        else:
            parts.append(private)
    return ", ".join(parts)


def _format_command(command: str | None) -> str:
    command = command or ""
    if len(command) > COMMAND_WIDTH:
        command = command[: COMMAND_WIDTH - 1] + "…"
    return f'"{command}"'


def _container_rows(containers: list[dict], now: pd.Timestamp) -> pd.DataFrame:
    rows = [
        {
            "CONTAINER ID": (c.get("Id") or "")[:SHORT_ID_LEN],
            "IMAGE": c.get("Image", ""),
            "COMMAND": _format_command(c.get("Command")),
            "CREATED": _running_for(c.get("Created"), now),
            "STATUS": c.get("Status", ""),
            "PORTS": _format_ports(c.get("Ports")),
            # The API reports names with a leading slash
            "NAMES": ",".join(n.lstrip("/") for n in c.get("Names") or []),
        }
        for c in containers
    ]
    return pd.DataFrame(rows, columns=PS_COLUMNS)


def _to_text(df: pd.DataFrame) -> str:
    """Left-aligned, space-padded table like the engine's own CLI prints."""
    widths = {}
    for col in df.columns:
        longest = df[col].astype(str).str.len().max()
        widths[col] = max(len(col), 0 if pd.isna(longest) else int(longest))

    def line(values) -> str:
        cells = [str(v).ljust(widths[col]) for col, v in zip(df.columns, values)]
        return (" " * COLUMN_GAP).join(cells).rstrip()

    lines = [line(df.columns)]
    lines += [line(row) for row in df.itertuples(index=False)]
    return "\n".join(lines)


def _apply_format(df: pd.DataFrame, fmt: str) -> str:
    """Render rows through a Go-template-style format such as ``table {{.ID}}\\t{{.Names}}``."""
    fmt = fmt.replace("\\t", "\t").replace("\\n", "\n")
    table = fmt.startswith("table")
    if table:
        fmt = fmt[len("table"):].lstrip(" ")

    unknown = [f for f in _PLACEHOLDER_RE.findall(fmt) if f not in FORMAT_FIELDS]
    if unknown:
        raise ValueError(
            f"Unknown format field(s): {', '.join(unknown)}. "
            f"Choose from: {', '.join(FORMAT_FIELDS)}"
        )

    def fill(values: dict) -> str:
        return _PLACEHOLDER_RE.sub(lambda m: str(values[FORMAT_FIELDS[m.group(1)]]), fmt)

    lines = [fill({col: col for col in PS_COLUMNS})] if table else []
    lines += [fill(row) for row in df.to_dict(orient="records")]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Public renderers
# ---------------------------------------------------------------------------


def containers_table(
    containers: list[dict],
    quiet: bool = False,
    fmt: str | None = None,
    now: pd.Timestamp | None = None,
) -> str:
    """Render a /containers/json payload for `ps`.

    ``quiet`` prints short IDs only and takes priority over ``fmt``.
    """
    if quiet:
        return "\n".join((c.get("Id") or "")[:SHORT_ID_LEN] for c in containers)

    if now is None:
        now = pd.Timestamp.now(tz="UTC")
    df = _container_rows(containers, now)
    if fmt:
        return _apply_format(df, fmt)
    return _to_text(df)


def key_value_block(title: str, data: dict, keys: list[str] | None = None) -> str:
    """Render selected scalar fields of a payload as an indented block."""
    lines = [f"{title}:"]
    for key in keys or list(data):
        value = data.get(key)
        if value is None or isinstance(value, (dict, list)):
            continue
        lines.append(f" {key}: {value}")
    return "\n".join(lines)
