"""
YAML → Program loader.

Loads the default training programs from individual YAML files in the
bundled ``src/liftlog/programs/`` directory.  Each file (e.g. push.yaml)
holds one program; the file stem is its program_id.

User overrides: place matching files in ``<data_dir>/programs/``.
A user file is deep-merged over the bundled definition, so only changed
keys need to be listed.  A user file whose stem does not match any
bundled file is treated as a new program.

Usage (internal, called by program_catalog.py):
    from .program_loader import load_programs_from_yaml
    programs = load_programs_from_yaml(user_dir)   # list, possibly empty
"""

from __future__ import annotations

import warnings
from pathlib import Path

import yaml

from ..core.models import Program
from .serializers import ValidationError, dict_to_program


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} when it is unreadable or not a mapping."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"liftlog: could not read {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def get_bundled_programs_dir() -> Path | None:
    """Return path to the bundled programs/ data directory, or None if not found."""
    # program_loader.py lives at src/liftlog/io/program_loader.py
    candidate = Path(__file__).parent.parent / "programs"
    return candidate if candidate.is_dir() else None


def program_from_yaml_dict(stem: str, raw: dict) -> Program:
    """
    Build a Program from a parsed YAML mapping.

    The file stem supplies program_id and, when absent, the short name.

    Raises:
        ValidationError: If the mapping is not a valid program
    """
    data = dict(raw)
    data.setdefault("program_id", stem)
    data.setdefault("name", stem)
    return dict_to_program(data)


def load_programs_from_yaml(user_dir: Path | None = None) -> list[Program]:
    """Return programs loaded from bundled and user YAML files.

    Bundled files come first in file-name order, each deep-merged with a
    user file of the same stem when present; user-only files follow.
    Invalid files are skipped with a warning.
    """
    bundled_dir = get_bundled_programs_dir()

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None and user_dir.is_dir():
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)
    else:
        user_dir = None

    programs: list[Program] = []

    for stem, bundled_path in stems.items():
        raw = _load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = _load_yaml_file(user_path)
                if user_raw:
                    raw = _deep_merge(raw, user_raw)
        try:
            programs.append(program_from_yaml_dict(stem, raw))
        except ValidationError as exc:
            warnings.warn(f"liftlog: skipping program '{stem}': {exc}", stacklevel=2)

    for p in user_only:
        raw = _load_yaml_file(p)
        if not raw:
            continue
        try:
            programs.append(program_from_yaml_dict(p.stem, raw))
        except ValidationError as exc:
            warnings.warn(f"liftlog: skipping user program '{p.stem}': {exc}", stacklevel=2)

    return programs
