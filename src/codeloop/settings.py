# codeloop: Lightweight YAML settings loader for per-repository overrides (.codeloop/settings.yaml).

from __future__ import annotations

import pathlib
from typing import Any, Dict, Optional

import yaml


def load_settings(repo_root: pathlib.Path) -> Dict[str, Any]:
    """
    Load codeloop settings from <repo>/.codeloop/settings.yaml or settings.yml.

    Returns an empty dict {} when the settings file is missing, unreadable, or
    does not contain a mapping. The function never raises.
    """
    try:
        settings_dir = pathlib.Path(repo_root) / ".codeloop"
        candidates = [settings_dir / "settings.yaml", settings_dir / "settings.yml"]
        for p in candidates:
            try:
                if p.exists() and p.is_file():
                    data = yaml.safe_load(p.read_text(encoding="utf-8"))
                    if isinstance(data, dict):
                        return data
                    # Non-mapping YAML is treated as empty settings.
                    return {}
            except (OSError, yaml.YAMLError):
                continue
        return {}
    except OSError:
        return {}


def setting(settings: Dict[str, Any], dotted: str, default: Optional[Any] = None) -> Any:
    """Look up a nested key such as "session.max_turns"; missing or non-mapping levels yield default."""
    node: Any = settings
    for part in dotted.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node if node is not None else default
