"""Shared fixtures for opencode-bundle tests."""

from pathlib import Path

import pytest

from opencode_bundle.bundle import BundleAgent, BundlePlugin, BundleSkillDir, OpenCodeBundle


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep user config out of the real home directory."""
    home = tmp_path / "bundle-home"
    monkeypatch.setenv("OPENCODE_BUNDLE_HOME", str(home))
    return home


@pytest.fixture
def skill_source(tmp_path) -> Path:
    """A skill directory with a nested file and a binary asset."""
    source = tmp_path / "src-skills" / "pdf"
    (source / "scripts").mkdir(parents=True)
    (source / "SKILL.md").write_text("---\nname: pdf\n---\n\nWork with PDFs.\n")
    (source / "scripts" / "extract.py").write_text("print('extract')\n")
    (source / "logo.bin").write_bytes(b"\x00\x01\xfe\xff")
    return source


@pytest.fixture
def full_bundle(skill_source) -> OpenCodeBundle:
    return OpenCodeBundle(
        config={"$schema": "https://opencode.ai/config.json", "model": "anthropic/claude", "version": 1},
        agents=(
            BundleAgent(name="lint", content="do lint"),
            BundleAgent(name="review", content="---\ndescription: Reviewer\n---\n\nReview the diff."),
        ),
        plugins=(BundlePlugin(name="notify.ts", content="export const Notify = async () => ({})"),),
        skill_dirs=(BundleSkillDir(name="pdf", source_dir=skill_source),),
    )
