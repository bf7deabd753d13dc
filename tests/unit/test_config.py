"""Unit tests for settings, file handling and logging."""

import json
import logging

from content_hub.config.settings import Settings, get_settings
from content_hub.utils.file_handler import FileHandler
from content_hub.utils.logger import get_logger, setup_logger


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.llm_provider == "gemini"
        assert settings.max_retries == 5
        assert settings.min_internal_links == 8
        assert settings.cache_ttl_seconds == 3600
        assert settings.stale_after_days == 365
        assert len(settings.proxy_templates) == 5

    def test_word_targets(self):
        settings = Settings(_env_file=None)
        assert settings.word_targets(is_pillar=False) == (2200, 2800)
        assert settings.word_targets(is_pillar=True) == (3500, 4500)

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MIN_INTERNAL_LINKS", "5")
        monkeypatch.setenv("LLM_PROVIDER", "groq")
        monkeypatch.setenv("OPENROUTER_MODELS", '["a/model", "b/model"]')

        settings = Settings(_env_file=None)

        assert settings.min_internal_links == 5
        assert settings.llm_provider == "groq"
        assert settings.openrouter_models == ["a/model", "b/model"]

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


class TestFileHandler:
    """Tests for FileHandler."""

    def test_slugify(self):
        assert FileHandler.slugify("Home Composting: A Guide!") == "home-composting-a-guide"
        assert FileHandler.slugify("!!!") == "untitled"

    def test_json_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "data.json"
        FileHandler.write_json(path, {"a": [1, 2]})
        assert FileHandler.read_json(path) == {"a": [1, 2]}

    def test_save_article(self, tmp_path):
        paths = FileHandler.save_article(tmp_path, "compost-guide", "<p>Body</p>", {"title": "Compost"})

        assert paths["html"] == tmp_path / "final" / "compost-guide.html"
        assert paths["html"].read_text() == "<p>Body</p>"
        metadata = json.loads(paths["metadata"].read_text())
        assert metadata["title"] == "Compost"
        assert "saved_at" in metadata

    def test_save_for_review(self, tmp_path):
        paths = FileHandler.save_article(tmp_path, "x", "<p/>", {}, needs_review=True)
        assert paths["html"].parent.name == "review"


class TestLogger:
    """Tests for logger setup."""

    def test_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        logger = setup_logger("content_hub_test_file", level="DEBUG", log_file=log_file, use_color=False)

        logger.debug("hello log")
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.DEBUG
        assert "hello log" in log_file.read_text()

    def test_no_duplicate_handlers(self):
        first = setup_logger("content_hub_test_dupes")
        count = len(first.handlers)
        second = setup_logger("content_hub_test_dupes")
        assert second is first
        assert len(second.handlers) == count


    def test_resetup_changes_level_only(self):
        first = setup_logger("content_hub_test_relevel", level="INFO")
        count = len(first.handlers)

        second = setup_logger("content_hub_test_relevel", level="WARNING")

        assert second.level == logging.WARNING
        assert len(second.handlers) == count

    def test_get_logger_namespaces_bare_names(self):
        assert get_logger("cli").name == "content_hub.cli"
        assert get_logger("content_hub.linking").name == "content_hub.linking"
        assert get_logger("content_hub").name == "content_hub"

    def test_quiets_http_libraries(self):
        setup_logger("content_hub_test_quiet")
        assert logging.getLogger("httpx").level == logging.WARNING
