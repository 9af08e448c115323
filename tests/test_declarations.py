"""Tests for the taskfile declaration store and extra-package detection."""

import yaml
import pytest

from jsh.align import find_extras
from jsh.declarations import DeclarationStore
from jsh.errors import DeclarationError
from jsh.tui.models import Action, PackageKind


class TestDeclarationStore:
    def test_declared(self, taskfile):
        store = DeclarationStore(taskfile)
        assert store.declared(PackageKind.FORMULA) == ["jq"]
        assert store.declared(PackageKind.CASK) == ["slack"]

    def test_missing_file_declares_nothing(self, temp_dir):
        store = DeclarationStore(temp_dir / "absent.yaml")
        assert store.declared(PackageKind.FORMULA) == []

    def test_declare_appends(self, taskfile):
        store = DeclarationStore(taskfile)
        assert store.declare("fzf", PackageKind.FORMULA) is True
        assert store.declared(PackageKind.FORMULA) == ["jq", "fzf"]

    def test_declare_keeps_other_keys(self, taskfile):
        DeclarationStore(taskfile).declare("iterm2", PackageKind.CASK)
        data = yaml.safe_load(taskfile.read_text())
        assert data["version"] == "3"
        assert data["tasks"]["install"]["cmds"] == ["brew bundle"]
        assert data["vars"]["casks"] == ["slack", "iterm2"]

    def test_declare_is_idempotent(self, taskfile):
        store = DeclarationStore(taskfile)
        before = taskfile.read_text()
        assert store.declare("jq", PackageKind.FORMULA) is True
        assert taskfile.read_text() == before

    def test_declare_creates_sections(self, temp_dir):
        path = temp_dir / "taskfile.yaml"
        path.write_text("version: '3'\n")
        store = DeclarationStore(path)
        store.declare("jq", PackageKind.FORMULA)
        assert yaml.safe_load(path.read_text())["vars"] == {"formulae": ["jq"]}

    def test_declare_leaves_no_temp_files(self, taskfile):
        DeclarationStore(taskfile).declare("fzf", PackageKind.FORMULA)
        assert [p.name for p in taskfile.parent.iterdir()] == [taskfile.name]

    def test_declare_missing_file(self, temp_dir):
        store = DeclarationStore(temp_dir / "absent.yaml")
        with pytest.raises(DeclarationError, match="not found"):
            store.declare("jq", PackageKind.FORMULA)

    def test_invalid_yaml(self, temp_dir):
        path = temp_dir / "taskfile.yaml"
        path.write_text("vars: [unclosed\n")
        with pytest.raises(DeclarationError, match="Invalid YAML"):
            DeclarationStore(path).declared(PackageKind.FORMULA)

    def test_wrong_shape(self, temp_dir):
        path = temp_dir / "taskfile.yaml"
        path.write_text("vars:\n  formulae: jq\n")
        with pytest.raises(DeclarationError, match="must be a list"):
            DeclarationStore(path).declared(PackageKind.FORMULA)

    def test_top_level_not_mapping(self, temp_dir):
        path = temp_dir / "taskfile.yaml"
        path.write_text("- jq\n")
        with pytest.raises(DeclarationError, match="mapping"):
            DeclarationStore(path).declare("jq", PackageKind.FORMULA)


class TestFindExtras:
    def test_only_undeclared(self):
        extras = find_extras(
            {PackageKind.FORMULA: ["jq", "fzf"], PackageKind.CASK: ["slack"]},
            {PackageKind.FORMULA: ["jq"], PackageKind.CASK: ["slack"]},
        )
        assert [(e.label, e.kind) for e in extras] == [("fzf", PackageKind.FORMULA)]
        assert extras[0].action is Action.SKIP

    def test_sorted_case_insensitively(self):
        extras = find_extras(
            {PackageKind.FORMULA: ["zsh", "Bat"], PackageKind.CASK: ["alacritty"]},
            {},
        )
        assert [e.label for e in extras] == ["alacritty", "Bat", "zsh"]

    def test_name_in_both_kinds_listed_once(self):
        extras = find_extras(
            {PackageKind.FORMULA: ["docker"], PackageKind.CASK: ["docker"]},
            {},
        )
        assert [(e.label, e.kind) for e in extras] == [("docker", PackageKind.FORMULA)]

    def test_nothing_installed(self):
        assert find_extras({}, {PackageKind.FORMULA: ["jq"]}) == []
