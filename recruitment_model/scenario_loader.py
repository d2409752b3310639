from typing import Dict, Any
import os
import glob
import yaml
from copy import deepcopy

__all__ = ['deep_merge', 'load']


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge override into base and return the result.
    """
    for key, val in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(val, dict):
            base[key] = deep_merge(base[key], val)
        else:
            base[key] = deepcopy(val)
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


def load(path: str) -> Any:
    """
    Load a configuration or scenario from a YAML file or a directory of YAMLs.

    If path is a directory, returns Dict[str, Dict] keyed by file stem, each
    entry with its 'extends' chain resolved against sibling files.
    If path is a file, returns a single dict with its 'extends' chain resolved
    relative to the file's directory.
    """
    if os.path.isdir(path):
        raw = {}
        for ext in ('*.yaml', '*.yml'):
            for fp in sorted(glob.glob(os.path.join(path, ext))):
                name = os.path.splitext(os.path.basename(fp))[0]
                raw[name] = _read_yaml(fp)

        def resolve(name: str, seen=None):
            if seen is None:
                seen = set()
            if name in seen:
                raise ValueError(f"Circular extends detected in '{name}'")
            seen.add(name)
            cfg = raw.get(name)
            if cfg is None:
                raise ValueError(f"Scenario '{name}' not found in {path}")
            parent = cfg.get('extends')
            base = {}
            if parent:
                parent_name = os.path.splitext(parent)[0]
                base = resolve(parent_name, seen)
            overrides = {k: v for k, v in cfg.items() if k != 'extends'}
            return deep_merge(base, overrides)

        return {name: resolve(name) for name in raw}

    return _load_file(path, set())


def _load_file(path: str, seen: set) -> Dict[str, Any]:
    real = os.path.realpath(path)
    if real in seen:
        raise ValueError(f"Circular extends detected at '{path}'")
    seen.add(real)

    cfg = _read_yaml(path)
    parent = cfg.get('extends')
    if not parent:
        return cfg
    parent_fp = os.path.join(os.path.dirname(path), parent)
    if not os.path.exists(parent_fp):
        raise FileNotFoundError(f"Parent config '{parent}' not found for {path}")
    parent_cfg = _load_file(parent_fp, seen)
    overrides = {k: v for k, v in cfg.items() if k != 'extends'}
    return deep_merge(parent_cfg, overrides)
