"""Collect a bundle from a Claude-style plugin source tree.

Expected layout (every part optional):

    <source>/
    ├── opencode.json          # becomes the bundle config
    ├── agents/<name>.md       # one agent per markdown file
    ├── plugins/<file>         # copied under plugins/ with the same name
    └── skills/<name>/SKILL.md # skill directories
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from opencode_bundle.bundle import (
    CONFIG_FILENAME,
    BundleAgent,
    BundlePlugin,
    BundleSkillDir,
    OpenCodeBundle,
)
from opencode_bundle.errors import ManifestError

logger = logging.getLogger(__name__)


def collect_bundle(source_root: Union[str, Path]) -> OpenCodeBundle:
    """Scan ``source_root`` and return the bundle it describes.

    Entries are sorted by name so repeated runs produce the same bundle.
    """
    source_root = Path(source_root)
    if not source_root.is_dir():
        raise ManifestError(f"Plugin source directory not found: {source_root}")

    config = _load_config(source_root / CONFIG_FILENAME)

    agents = []
    agents_dir = source_root / "agents"
    if agents_dir.is_dir():
        for item in sorted(agents_dir.iterdir()):
            if item.is_file() and item.suffix == ".md":
                agents.append(BundleAgent(name=item.stem, content=_read_stripped(item)))

    plugins = []
    plugins_dir = source_root / "plugins"
    if plugins_dir.is_dir():
        for item in sorted(plugins_dir.iterdir()):
            if item.is_file() and not item.name.startswith("."):
                plugins.append(BundlePlugin(name=item.name, content=_read_stripped(item)))

    skill_dirs = []
    skills_dir = source_root / "skills"
    if skills_dir.is_dir():
        for skill_dir in sorted(skills_dir.iterdir()):
            if not skill_dir.is_dir() or skill_dir.name.startswith("."):
                continue
            if not (skill_dir / "SKILL.md").exists():
                logger.debug("Skipping %s: no SKILL.md", skill_dir)
                continue
            skill_dirs.append(BundleSkillDir(name=skill_dir.name, source_dir=skill_dir))

    logger.info(
        "Collected %d agents, %d plugins, %d skills from %s",
        len(agents),
        len(plugins),
        len(skill_dirs),
        source_root,
    )
    return OpenCodeBundle(
        config=config,
        agents=tuple(agents),
        plugins=tuple(plugins),
        skill_dirs=tuple(skill_dirs),
    )


def _load_config(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, IOError) as e:
        raise ManifestError(f"Cannot read {config_path}: {e}") from e
    if not isinstance(config, dict):
        raise ManifestError(f"{config_path} must contain a JSON object")
    return config


def _read_stripped(path: Path) -> str:
    # The writer appends the newline back
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read {path}: {e}") from e
    return content[:-1] if content.endswith("\n") else content
