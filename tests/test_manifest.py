"""Tests for loading bundles from manifests."""

import json

import pytest

from opencode_bundle.bundle import BundleAgent, BundlePlugin, write_opencode_bundle
from opencode_bundle.errors import ManifestError
from opencode_bundle.manifest import bundle_from_mapping, load_manifest


MANIFEST = """\
config:
  $schema: https://opencode.ai/config.json
  plugin:
    - opencode-skills
agents:
  - name: lint
    content: do lint
  - name: review
    file: agents/review.md
plugins:
  - name: notify.ts
    file: plugins/notify.ts
skills:
  - name: pdf
    dir: skills/pdf
"""


@pytest.fixture
def manifest_dir(tmp_path):
    root = tmp_path / "plugin"
    (root / "agents").mkdir(parents=True)
    (root / "plugins").mkdir()
    (root / "skills" / "pdf").mkdir(parents=True)
    (root / "agents" / "review.md").write_text("---\ndescription: Reviewer\n---\n\nReview it.\n")
    (root / "plugins" / "notify.ts").write_text("export default {}\n")
    (root / "skills" / "pdf" / "SKILL.md").write_text("# PDF\n")
    (root / "bundle.yaml").write_text(MANIFEST)
    return root


class TestLoadManifest:

    def test_loads_all_sections(self, manifest_dir):
        bundle = load_manifest(manifest_dir / "bundle.yaml")

        assert bundle.config == {
            "$schema": "https://opencode.ai/config.json",
            "plugin": ["opencode-skills"],
        }
        assert [a.name for a in bundle.agents] == ["lint", "review"]
        assert bundle.agents[0] == BundleAgent(name="lint", content="do lint")
        assert bundle.plugins == (BundlePlugin(name="notify.ts", content="export default {}"),)
        assert bundle.skill_dirs[0].name == "pdf"
        assert bundle.skill_dirs[0].source_dir == manifest_dir / "skills" / "pdf"

    def test_file_entries_reproduce_source_after_writing(self, manifest_dir, tmp_path):
        bundle = load_manifest(manifest_dir / "bundle.yaml")
        paths = write_opencode_bundle(tmp_path / "out", bundle)

        assert (paths.agents_dir / "review.md").read_bytes() == (manifest_dir / "agents" / "review.md").read_bytes()
        assert (paths.plugins_dir / "notify.ts").read_bytes() == (manifest_dir / "plugins" / "notify.ts").read_bytes()

    def test_json_manifest(self, tmp_path):
        path = tmp_path / "bundle.json"
        path.write_text(json.dumps({"config": {"version": 1}, "agents": [{"name": "a", "content": "x"}]}))

        bundle = load_manifest(path)

        assert bundle.config == {"version": 1}
        assert bundle.agents == (BundleAgent(name="a", content="x"),)

    def test_empty_file_is_empty_bundle(self, tmp_path):
        path = tmp_path / "bundle.yaml"
        path.write_text("")
        bundle = load_manifest(path)
        assert bundle.config == {}
        assert bundle.agents == ()

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(ManifestError, match="Cannot read manifest"):
            load_manifest(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bundle.yaml"
        path.write_text("agents: [unclosed\n")
        with pytest.raises(ManifestError, match="Invalid YAML"):
            load_manifest(path)

    def test_missing_referenced_file(self, tmp_path):
        path = tmp_path / "bundle.yaml"
        path.write_text("agents:\n  - name: gone\n    file: agents/gone.md\n")
        with pytest.raises(ManifestError, match="gone"):
            load_manifest(path)

    def test_undecodable_referenced_file(self, tmp_path):
        (tmp_path / "a.md").write_bytes(b"caf\xe9\n")
        path = tmp_path / "bundle.yaml"
        path.write_text("agents:\n  - name: latin\n    file: a.md\n")
        with pytest.raises(ManifestError, match=r"agents\[0\] \(latin\)"):
            load_manifest(path)

    def test_undecodable_manifest(self, tmp_path):
        path = tmp_path / "bundle.yaml"
        path.write_bytes(b"agents:\n  - name: caf\xe9\n")
        with pytest.raises(ManifestError, match="Cannot read manifest"):
            load_manifest(path)

    def test_missing_skill_dir_is_not_checked(self, tmp_path):
        path = tmp_path / "bundle.yaml"
        path.write_text("skills:\n  - name: later\n    dir: skills/later\n")
        bundle = load_manifest(path)
        assert bundle.skill_dirs[0].source_dir == tmp_path / "skills" / "later"


class TestBundleFromMapping:

    def test_not_a_mapping(self):
        with pytest.raises(ManifestError, match="mapping"):
            bundle_from_mapping(["agents"])

    def test_config_must_be_mapping(self):
        with pytest.raises(ManifestError, match="'config'"):
            bundle_from_mapping({"config": [1, 2]})

    def test_section_must_be_list(self):
        with pytest.raises(ManifestError, match="'agents' must be a list"):
            bundle_from_mapping({"agents": {"name": "a"}})

    def test_entry_must_be_mapping(self):
        with pytest.raises(ManifestError, match=r"plugins\[0\]"):
            bundle_from_mapping({"plugins": ["notify.ts"]})

    def test_name_required(self):
        with pytest.raises(ManifestError, match=r"agents\[1\]: 'name' is required"):
            bundle_from_mapping({"agents": [{"name": "a", "content": "x"}, {"content": "y"}]})

    def test_content_and_file_are_exclusive(self):
        with pytest.raises(ManifestError, match="exactly one"):
            bundle_from_mapping({"agents": [{"name": "a", "content": "x", "file": "a.md"}]})

    def test_content_or_file_required(self):
        with pytest.raises(ManifestError, match="exactly one"):
            bundle_from_mapping({"plugins": [{"name": "p.js"}]})

    def test_content_must_be_string(self):
        with pytest.raises(ManifestError, match="'content' must be a string"):
            bundle_from_mapping({"agents": [{"name": "a", "content": 42}]})

    def test_skill_dir_required(self):
        with pytest.raises(ManifestError, match=r"skills\[0\] \(pdf\): 'dir' is required"):
            bundle_from_mapping({"skills": [{"name": "pdf"}]})

    @pytest.mark.parametrize("key, value", [
        ("config", 0),
        ("config", ""),
        ("config", False),
        ("agents", ""),
        ("plugins", False),
        ("skills", 0),
    ])
    def test_falsy_values_of_wrong_type_are_rejected(self, key, value):
        with pytest.raises(ManifestError, match=f"'{key}' must be"):
            bundle_from_mapping({key: value})

    def test_null_sections_default_to_empty(self):
        bundle = bundle_from_mapping({"config": None, "agents": None, "plugins": None, "skills": None})
        assert bundle.config == {}
        assert bundle.agents == ()
        assert bundle.skill_dirs == ()

    def test_inline_content_kept_verbatim(self):
        bundle = bundle_from_mapping({"agents": [{"name": "a", "content": "line\n"}]})
        assert bundle.agents[0].content == "line\n"

    def test_duplicate_names_are_allowed(self):
        bundle = bundle_from_mapping({
            "agents": [{"name": "a", "content": "1"}, {"name": "a", "content": "2"}],
        })
        assert len(bundle.agents) == 2
