import pandas as pd
import pytest

from dockcli.render import (
    PS_COLUMNS,
    containers_table,
    human_duration,
    key_value_block,
)

CREATED = 1_700_000_000
NOW = pd.Timestamp(CREATED + 2 * 3600, unit="s", tz="UTC")

CONTAINER = {
    "Id": "a" * 64,
    "Image": "busybox",
    "Command": "sleep 1000",
    "Created": CREATED,
    "Status": "Up 2 hours",
    "Ports": [{"IP": "0.0.0.0", "PrivatePort": 80, "PublicPort": 8080, "Type": "tcp"}],
    "Names": ["/web"],
}


def test_default_table():
    lines = containers_table([CONTAINER], now=NOW).splitlines()

    assert lines[0].startswith("CONTAINER ID")
    assert lines[1].startswith("a" * 12 + " ")
    assert '"sleep 1000"' in lines[1]
    assert "2 hours ago" in lines[1]
    assert "0.0.0.0:8080->80/tcp" in lines[1]
    assert lines[1].endswith("web")


def test_empty_table_is_header_only():
    assert containers_table([]) == "   ".join(PS_COLUMNS)


def test_quiet_lists_short_ids():
    other = {**CONTAINER, "Id": "b" * 64}
    assert containers_table([CONTAINER, other], quiet=True) == "a" * 12 + "\n" + "b" * 12


def test_table_format_with_escaped_tab():
    out = containers_table([CONTAINER], fmt="table {{.ID}}\\t{{ .Names }}", now=NOW)
    assert out.splitlines() == ["CONTAINER ID\tNAMES", "a" * 12 + "\tweb"]


def test_plain_format_has_no_header():
    assert containers_table([CONTAINER], fmt="{{.Names}}: {{.Image}}", now=NOW) == "web: busybox"


def test_unknown_format_field():
    with pytest.raises(ValueError, match="Labels"):
        containers_table([CONTAINER], fmt="{{.Labels}}", now=NOW)


def test_long_command_truncated():
    long_cmd = {**CONTAINER, "Command": "python -m http.server 8000 --bind 0.0.0.0"}
    out = containers_table([long_cmd], fmt="{{.Command}}", now=NOW)
    assert out.startswith('"python -m http.serv')
    assert out.endswith('…"')


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "Less than a second"),
        (1, "1 second"),
        (30, "30 seconds"),
        (90, "About a minute"),
        (600, "10 minutes"),
        (50 * 60, "About an hour"),
        (5 * 3600, "5 hours"),
        (3 * 86400, "3 days"),
        (21 * 86400, "3 weeks"),
        (90 * 86400, "3 months"),
        (3 * 365 * 86400, "3 years"),
    ],
)
def test_human_duration(seconds, expected):
    assert human_duration(pd.Timedelta(seconds=seconds)) == expected


def test_key_value_block_skips_nested_and_missing():
    out = key_value_block(
        "Server", {"Version": "1.10.0", "Plugins": {"x": 1}}, ["Version", "Plugins", "Os"]
    )
    assert out == "Server:\n Version: 1.10.0"
