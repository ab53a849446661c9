"""OpenCode bundle model and writer.

A bundle is everything emitted for one output pass: the ``opencode.json``
config, agent prompts, plugin files and skill directories. The output layout
depends on whether the output root is itself a ``.opencode`` directory:

    <project>/                      <project>/.opencode/
    ├── opencode.json               ├── opencode.json
    └── .opencode/                  ├── agents/<name>.md
        ├── agents/<name>.md        ├── plugins/<name>
        ├── plugins/<name>          └── skills/<name>/
        └── skills/<name>/
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from opencode_bundle.files import copy_dir, ensure_dir, write_json, write_text

logger = logging.getLogger(__name__)

OPENCODE_DIR_NAME = ".opencode"
CONFIG_FILENAME = "opencode.json"


# =============================================================================
# Bundle Descriptor
# =============================================================================

@dataclass(frozen=True)
class BundleAgent:
    """A named prompt written to ``agents/<name>.md``."""

    name: str
    content: str


@dataclass(frozen=True)
class BundlePlugin:
    """A plugin file written verbatim to ``plugins/<name>``."""

    name: str  # Includes the file extension
    content: str


@dataclass(frozen=True)
class BundleSkillDir:
    """A skill directory copied recursively to ``skills/<name>/``."""

    name: str
    source_dir: Path


@dataclass(frozen=True)
class OpenCodeBundle:
    """Everything to write for one output pass.

    Name uniqueness of agents, plugins and skills is the caller's concern.
    """

    config: Dict[str, Any] = field(default_factory=dict)
    agents: Tuple[BundleAgent, ...] = ()
    plugins: Tuple[BundlePlugin, ...] = ()
    skill_dirs: Tuple[BundleSkillDir, ...] = ()


@dataclass(frozen=True)
class OpenCodePaths:
    """Resolved output locations for a bundle."""

    root: Path
    config_path: Path
    agents_dir: Path
    plugins_dir: Path
    skills_dir: Path


# =============================================================================
# Path Resolution & Writing
# =============================================================================

def resolve_opencode_paths(output_root: Union[str, Path]) -> OpenCodePaths:
    """Work out where each part of a bundle goes under ``output_root``.

    An output root named ``.opencode`` holds agents/plugins/skills directly;
    any other root is treated as a project root and gets them nested under
    ``.opencode/``. The config file always sits directly under the root.
    """
    root = Path(output_root)
    if root.name == OPENCODE_DIR_NAME:
        content_root = root
    else:
        content_root = root / OPENCODE_DIR_NAME

    return OpenCodePaths(
        root=root,
        config_path=root / CONFIG_FILENAME,
        agents_dir=content_root / "agents",
        plugins_dir=content_root / "plugins",
        skills_dir=content_root / "skills",
    )


def write_opencode_bundle(output_root: Union[str, Path], bundle: OpenCodeBundle) -> OpenCodePaths:
    """Write ``bundle`` to disk under ``output_root``.

    Existing files are overwritten. Plugin and skill directories are only
    created when the bundle has plugins or skills. Any I/O error propagates
    and files written before it stay on disk.

    Returns the resolved paths.
    """
    paths = resolve_opencode_paths(output_root)
    ensure_dir(paths.root)

    write_json(paths.config_path, bundle.config)
    logger.debug("Wrote config %s", paths.config_path)

    for agent in bundle.agents:
        target = write_text(paths.agents_dir / f"{agent.name}.md", agent.content + "\n")
        logger.debug("Wrote agent %s", target)

    if bundle.plugins:
        for plugin in bundle.plugins:
            target = write_text(paths.plugins_dir / plugin.name, plugin.content + "\n")
            logger.debug("Wrote plugin %s", target)

    if bundle.skill_dirs:
        for skill in bundle.skill_dirs:
            target = copy_dir(skill.source_dir, paths.skills_dir / skill.name)
            logger.debug("Copied skill %s -> %s", skill.source_dir, target)

    logger.info(
        "Wrote bundle to %s (%d agents, %d plugins, %d skills)",
        paths.root,
        len(bundle.agents),
        len(bundle.plugins),
        len(bundle.skill_dirs),
    )
    return paths
