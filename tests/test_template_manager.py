"""Tests for YAML template loading."""

from services.template_manager import TemplateManager


def write_templates(path, body: str) -> str:
    path.write_text(body, encoding="utf-8")
    return str(path)


class TestLoadTemplates:
    """Tests for TemplateManager.load_templates."""

    def test_bundled_templates_cover_every_key(self, template_manager) -> None:
        """The shipped YAML defines every template the notifier uses."""
        for key in template_manager._get_default_templates():
            assert key in template_manager.templates

    def test_custom_file(self, tmp_path) -> None:
        path = write_templates(tmp_path / "t.yaml", "templates:\n  waiting:\n    format: 'wait {attempt}'\n")
        manager = TemplateManager(path, watch=False)
        assert manager.format_message("waiting", attempt=5) == "wait 5"

    def test_missing_key_falls_back_to_default(self, tmp_path) -> None:
        path = write_templates(tmp_path / "t.yaml", "templates:\n  waiting:\n    format: 'wait {attempt}'\n")
        manager = TemplateManager(path, watch=False)
        assert "Connection lost" in manager.format_message("connection_lost", time="10:00:00")

    def test_missing_file_uses_defaults(self, tmp_path) -> None:
        manager = TemplateManager(str(tmp_path / "absent.yaml"), watch=False)
        assert manager.templates == manager._get_default_templates()

    def test_invalid_file_uses_defaults(self, tmp_path) -> None:
        path = write_templates(tmp_path / "t.yaml", "- just\n- a list\n")
        manager = TemplateManager(path, watch=False)
        assert manager.templates == manager._get_default_templates()

    def test_reload_keeps_previous_on_failure(self, tmp_path) -> None:
        path = tmp_path / "t.yaml"
        write_templates(path, "templates:\n  waiting:\n    format: 'first {attempt}'\n")
        manager = TemplateManager(str(path), watch=False)

        write_templates(path, "templates: [unclosed\n")
        manager.reload_templates()
        assert manager.format_message("waiting", attempt=1) == "first 1"

    def test_reload_picks_up_changes(self, tmp_path) -> None:
        path = tmp_path / "t.yaml"
        write_templates(path, "templates:\n  waiting:\n    format: 'first {attempt}'\n")
        manager = TemplateManager(str(path), watch=False)

        write_templates(path, "templates:\n  waiting:\n    format: 'second {attempt}'\n")
        manager.reload_templates()
        assert manager.format_message("waiting", attempt=2) == "second 2"


class TestFormatMessage:
    """Tests for TemplateManager.format_message."""

    def test_missing_variable(self, template_manager) -> None:
        assert "missing variable" in template_manager.format_message("waiting", time="10:00:00")

    def test_unknown_template(self, template_manager) -> None:
        assert template_manager.format_message("nope") == "Template not found: nope"

    def test_bad_format_spec(self, tmp_path) -> None:
        path = write_templates(tmp_path / "t.yaml", "templates:\n  waiting:\n    format: '{attempt:.2f}'\n")
        manager = TemplateManager(path, watch=False)
        assert "Template formatting error" in manager.format_message("waiting", attempt="x")


class TestWatching:
    """Tests for the file watcher lifecycle."""

    def test_start_and_stop(self, tmp_path) -> None:
        path = write_templates(tmp_path / "t.yaml", "templates: {}\n")
        manager = TemplateManager(path, watch=True)
        assert manager.observer is not None
        manager.stop_watching()
        assert manager.observer is None

    def test_missing_directory_is_not_watched(self, tmp_path) -> None:
        manager = TemplateManager(str(tmp_path / "nowhere" / "t.yaml"), watch=True)
        assert manager.observer is None
