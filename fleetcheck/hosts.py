"""Load host lists from plain text or YAML files and the command line."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import yaml

from fleetcheck.errors import ConfigurationError

logger = logging.getLogger(__name__)


def parse_host_text(text: str) -> list[str]:
    """One host per line; blank lines and ``#`` comments are ignored."""
    hosts = []
    for line in text.splitlines():
        entry = line.split("#", 1)[0].strip()
        if entry:
            hosts.append(entry)
    return hosts


def load_hosts_file(path: str | Path) -> list[str]:
    """Read a host list from ``.yaml``/``.yml`` (``hosts:`` list) or plain text."""
    p = Path(path)
    if not p.is_file():
        raise ConfigurationError(f"hosts file not found: {p}")

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() not in (".yaml", ".yml"):
        hosts = parse_host_text(text)
        logger.info("Loaded %d hosts from %s", len(hosts), p)
        return hosts

    try:
        raw = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"hosts file {p} is not valid YAML: {e}") from e

    entries = raw.get("hosts") if isinstance(raw, dict) else raw
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise ConfigurationError(f"hosts file {p}: 'hosts' must be a list")

    hosts = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, str) or not entry.strip():
            raise ConfigurationError(f"hosts file {p}: invalid entry at position {i}: {entry!r}")
        hosts.append(entry.strip())
    logger.info("Loaded %d hosts from %s", len(hosts), p)
    return hosts


def collect_hosts(cli_hosts: Iterable[str] = (), hosts_file: str | Path | None = None) -> list[str]:
    """Command-line hosts first, then file hosts, preserving order and duplicates."""
    hosts = list(cli_hosts)
    if hosts_file:
        hosts.extend(load_hosts_file(hosts_file))
    return hosts
