"""Load an OpenCode bundle from a YAML (or JSON) manifest.

Example manifest::

    config:
      $schema: https://opencode.ai/config.json
    agents:
      - name: lint
        content: Run the linter and report problems.
      - name: review
        file: agents/review.md
    plugins:
      - name: notify.ts
        file: plugins/notify.ts
    skills:
      - name: pdf
        dir: skills/pdf

Relative ``file`` and ``dir`` paths resolve against the manifest's directory.
"""

from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from opencode_bundle.bundle import BundleAgent, BundlePlugin, BundleSkillDir, OpenCodeBundle
from opencode_bundle.errors import ManifestError


def load_manifest(path: Union[str, Path]) -> OpenCodeBundle:
    """Read a manifest file and build the bundle it describes."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    return bundle_from_mapping(data, base_dir=path.parent)


def bundle_from_mapping(data: Any, base_dir: Union[str, Path] = ".") -> OpenCodeBundle:
    """Build a bundle from an already-parsed manifest mapping."""
    if not isinstance(data, dict):
        raise ManifestError("Manifest must be a mapping")

    base_dir = Path(base_dir)

    config = data.get("config")
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ManifestError("'config' must be a mapping")

    agents = tuple(
        BundleAgent(name=name, content=content)
        for name, content in _text_entries(data, "agents", base_dir)
    )
    plugins = tuple(
        BundlePlugin(name=name, content=content)
        for name, content in _text_entries(data, "plugins", base_dir)
    )

    skill_dirs = []
    for index, entry in enumerate(_entries(data, "skills")):
        name = _entry_name(entry, "skills", index)
        source = entry.get("dir")
        if not isinstance(source, str) or not source:
            raise ManifestError(f"skills[{index}] ({name}): 'dir' is required")
        # Existence is checked by the writer when it copies
        skill_dirs.append(BundleSkillDir(name=name, source_dir=base_dir / source))

    return OpenCodeBundle(
        config=config,
        agents=agents,
        plugins=plugins,
        skill_dirs=tuple(skill_dirs),
    )


def _entries(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    entries = data.get(key)
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ManifestError(f"'{key}' must be a list")
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ManifestError(f"{key}[{index}] must be a mapping")
    return entries


def _entry_name(entry: Dict[str, Any], key: str, index: int) -> str:
    name = entry.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError(f"{key}[{index}]: 'name' is required")
    return name


def _text_entries(data: Dict[str, Any], key: str, base_dir: Path) -> List[tuple]:
    """Return (name, content) pairs for agent or plugin entries.

    Each entry has exactly one of ``content`` (inline text) or ``file``.
    A file's final newline is dropped since the writer appends one.
    """
    results = []
    for index, entry in enumerate(_entries(data, key)):
        name = _entry_name(entry, key, index)
        has_content = "content" in entry
        has_file = "file" in entry

        if has_content == has_file:
            raise ManifestError(f"{key}[{index}] ({name}): set exactly one of 'content' or 'file'")

        if has_content:
            content = entry["content"]
            if not isinstance(content, str):
                raise ManifestError(f"{key}[{index}] ({name}): 'content' must be a string")
        else:
            file_path = base_dir / str(entry["file"])
            try:
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ManifestError(f"{key}[{index}] ({name}): cannot read {file_path}: {e}") from e
            if content.endswith("\n"):
                content = content[:-1]

        results.append((name, content))
    return results
