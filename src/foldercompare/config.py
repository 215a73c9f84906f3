"""Configuration loading, merging, and interactive creation."""

from __future__ import annotations

from foldercompare.fileops import EXTRA_SUBFOLDER_A
from foldercompare.fileops import EXTRA_SUBFOLDER_B
from foldercompare.hasher import DEFAULT_CHUNK_SIZE

import logging
import os
import pathlib
import tomllib


logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.toml"

_DEFAULTS: dict[str, object] = {
    "chunk_size": DEFAULT_CHUNK_SIZE,
    "extra_subfolder_a": EXTRA_SUBFOLDER_A,
    "extra_subfolder_b": EXTRA_SUBFOLDER_B,
    "match": "hash",
    "progress": True,
    "dry_run": False,
}

_BOOL_KEYS = {"progress", "dry_run"}
_STR_KEYS = {"extra_subfolder_a", "extra_subfolder_b"}
_VALID_MATCH = {"hash", "name"}


def _config_dir() -> pathlib.Path:
    """Return the foldercompare config directory."""
    base = pathlib.Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()
    d = base / "foldercompare"
    d.mkdir(parents=True, exist_ok=True)
    return d


def load_config(config_dir: pathlib.Path | None = None) -> dict:
    """Load config.toml and return its contents as a dict.

    Returns {} if no file exists or on parse error.
    """
    if config_dir is None:
        config_dir = _config_dir()
    path = config_dir / CONFIG_FILENAME
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        return {}


def merge_config_into_args(args, config: dict) -> None:
    """Three-layer merge: CLI > config > hardcoded defaults.

    Mutates *args* in place.
    """
    for key in _BOOL_KEYS:
        if getattr(args, key, None) is not None:
            continue
        cfg_val = config.get(key)
        setattr(args, key, bool(cfg_val) if cfg_val is not None else _DEFAULTS[key])

    for key in _STR_KEYS:
        if getattr(args, key, None) is not None:
            continue
        cfg_val = config.get(key)
        setattr(args, key, str(cfg_val) if cfg_val else _DEFAULTS[key])

    # chunk_size: positive integer only
    if getattr(args, "chunk_size", None) is None:
        cfg_val = config.get("chunk_size")
        if isinstance(cfg_val, int) and not isinstance(cfg_val, bool) and cfg_val > 0:
            args.chunk_size = cfg_val
        else:
            args.chunk_size = _DEFAULTS["chunk_size"]

    if getattr(args, "match", None) is None:
        cfg_val = config.get("match")
        args.match = cfg_val if cfg_val in _VALID_MATCH else _DEFAULTS["match"]


def create_config_interactive(
    config_dir: pathlib.Path | None = None,
    input_fn=input,
    print_fn=print,
) -> pathlib.Path:
    """Interactively create or update config.toml.

    Returns the path to the written config file.
    """
    if config_dir is None:
        config_dir = _config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    existing = load_config(config_dir)

    settings: list[tuple[str, str, str]] = [
        ("chunk_size", "Hash read size in bytes", str(_DEFAULTS["chunk_size"])),
        ("extra_subfolder_a", "Subfolder for files only in A", str(_DEFAULTS["extra_subfolder_a"])),
        ("extra_subfolder_b", "Subfolder for files only in B", str(_DEFAULTS["extra_subfolder_b"])),
        ("match", "Match duplicates by (hash/name)", str(_DEFAULTS["match"])),
        ("progress", "Show progress bars (true/false)", str(_DEFAULTS["progress"]).lower()),
        ("dry_run", "Dry run (true/false)", str(_DEFAULTS["dry_run"]).lower()),
    ]

    result: dict[str, object] = {}

    for key, label, hardcoded_default in settings:
        default = str(existing.get(key, hardcoded_default))
        if key in _BOOL_KEYS:
            default = default.lower()
        value = input_fn(f"  {label} [{default}]: ").strip()
        if not value:
            value = default
        if key in _BOOL_KEYS:
            result[key] = value.lower() in ("true", "1", "yes")
        elif key == "chunk_size":
            try:
                chunk_size = int(value)
            except ValueError:
                chunk_size = 0
            if chunk_size <= 0:
                print_fn(f"  Invalid chunk size {value!r}, using {hardcoded_default}")
                chunk_size = int(hardcoded_default)
            result[key] = chunk_size
        elif key == "match" and value not in _VALID_MATCH:
            print_fn(f"  Invalid match mode {value!r}, using {hardcoded_default}")
            result[key] = hardcoded_default
        else:
            result[key] = value

    # Keep the file short: drop booleans that equal their default
    for key in _BOOL_KEYS:
        if key in result and result[key] == _DEFAULTS[key]:
            del result[key]

    path = config_dir / CONFIG_FILENAME
    path.write_text(_to_toml(result))
    print_fn(f"Configuration saved to {path}")
    return path


def _to_toml(data: dict) -> str:
    """Serialize a flat dict to TOML format."""
    lines: list[str] = []
    for key, value in data.items():
        if isinstance(value, bool):
            lines.append(f"{key} = {str(value).lower()}")
        elif isinstance(value, str):
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            lines.append(f'{key} = "{escaped}"')
        elif value is None:
            continue
        else:
            lines.append(f"{key} = {value}")
    return "\n".join(lines) + "\n" if lines else ""
