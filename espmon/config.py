from __future__ import annotations

import os
import tomllib

from .constants import DEFAULT_BAUD


def get_bool_env(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    val = val.lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def load_toml_config(path: str) -> dict:
    """Load TOML configuration from path."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _get_cfg(cfg: dict, section: str, key: str, default=None):
    sec = cfg.get(section, {})
    if not isinstance(sec, dict):
        return default
    return sec.get(key, default)


def config_defaults_from(cfg: dict) -> dict:
    """Map TOML config (plus environment) onto argparse destinations."""
    return {
        "port": _get_cfg(cfg, "serial", "port", os.getenv("ESPMON_PORT")),
        "baud": _get_cfg(cfg, "serial", "baud", DEFAULT_BAUD),
        "gpio_dtr": _get_cfg(cfg, "gpio", "dtr", None),
        "gpio_rts": _get_cfg(cfg, "gpio", "rts", None),
        "verbose": _get_cfg(cfg, "logging", "verbose", False),
        "json": _get_cfg(cfg, "logging", "json", get_bool_env("ESPMON_JSON", False)),
        "no_banner": _get_cfg(cfg, "logging", "no_banner", False),
    }


def apply_config(args, cfg: dict) -> None:
    """Backfill options left unset on the command line.

    CLI arguments win; config values fill the gaps and built-in defaults fill
    whatever is still missing."""
    for source in (config_defaults_from(cfg), config_defaults_from({})):
        for k, v in source.items():
            if getattr(args, k, None) in (None, ""):
                setattr(args, k, v)


def resolved_config_dict(args) -> dict:
    def _addr(value):
        return str(value) if value else None

    return {
        "serial": {"port": args.port, "baud": args.baud},
        "gpio": {
            "dtr": _addr(args.gpio_dtr),
            "rts": _addr(args.gpio_rts),
        },
        "logging": {
            "verbose": bool(args.verbose),
            "json": bool(args.json),
            "no_banner": bool(args.no_banner),
        },
    }
