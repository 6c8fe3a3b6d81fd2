"""Tests for scope-aware YAML settings."""

import pytest
import yaml
from vault_loader.settings import AppSettings
from vault_loader.settings import LoadOrderEntry
from vault_loader.settings import SettingsPaths


@pytest.fixture
def settings(tmp_path):
    return AppSettings(SettingsPaths.under(tmp_path))


class TestLoadOrderSettings:
    def test_empty_by_default(self, settings):
        assert settings.get_load_order() == []

    def test_add_entries_appends(self, settings):
        settings.add_load_order_entry(["lib"])
        settings.add_load_order_entry(["app/main.py", "plugins"])

        assert settings.get_load_order() == [
            LoadOrderEntry(paths=["lib"]),
            LoadOrderEntry(paths=["app/main.py", "plugins"]),
        ]

    def test_written_as_yaml(self, settings):
        settings.add_load_order_entry(["lib"], scope="project")

        content = yaml.safe_load(settings.paths.project_settings.read_text())
        assert content == {"load_order": [{"paths": ["lib"]}]}

    def test_more_specific_scope_replaces_list(self, settings):
        settings.set_load_order([LoadOrderEntry(paths=["global-lib"])], scope="global")
        settings.set_load_order([LoadOrderEntry(paths=["local-lib"])], scope="local")

        assert settings.get_load_order() == [LoadOrderEntry(paths=["local-lib"])]

    def test_clear_scope_falls_back(self, settings):
        settings.set_load_order([LoadOrderEntry(paths=["global-lib"])], scope="global")
        settings.set_load_order([LoadOrderEntry(paths=["project-lib"])], scope="project")

        settings.clear_load_order(scope="project")

        assert settings.get_load_order() == [LoadOrderEntry(paths=["global-lib"])]

    def test_invalid_entries_are_ignored(self, settings):
        path = settings.paths.project_settings
        path.parent.mkdir(parents=True)
        path.write_text(yaml.safe_dump({"load_order": [{"paths": ["ok"]}, {"paths": "not-a-list"}]}))

        assert settings.get_load_order() == [LoadOrderEntry(paths=["ok"])]

    def test_malformed_file_is_skipped(self, settings):
        settings.set_load_order([LoadOrderEntry(paths=["global-lib"])], scope="global")
        path = settings.paths.local_settings
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("load_order: [unclosed")

        assert settings.get_load_order() == [LoadOrderEntry(paths=["global-lib"])]


class TestStoreRoot:
    def test_unset(self, settings):
        assert settings.get_store_root() is None

    def test_set_and_get(self, settings):
        settings.set_store_root("/vault")

        assert settings.get_store_root() == "/vault"

    def test_project_and_local_merge(self, settings):
        settings.set_store_root("/project-vault", scope="project")
        settings.set_store_root("/local-vault", scope="local")

        assert settings.get_store_root() == "/local-vault"
