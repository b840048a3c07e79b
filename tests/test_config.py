import os

import pytest

from config import Config, ConfigError


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    os.chmod(path, 0o600)
    return str(path)


class TestConfig:
    def test_defaults(self):
        config = Config({"courses": ["C1"]})
        assert config.course_ids == ["C1"]
        assert config.max_concurrency == 8
        assert config.timeout == 30
        assert config.on_course_error == "fail"
        assert config.skip_failed_courses is False
        assert config.token_file.endswith("classroom-todo/token.json")
        assert config.client_secret_file.endswith("classroom-todo/client_secret.json")

    def test_load_yaml(self, tmp_path):
        path = write_config(tmp_path, (
            "courses:\n"
            "  - id: 681205615668\n"
            "    name: Data Comm\n"
            "  - \"684704532100\"\n"
            "max_concurrency: 3\n"
            "on_course_error: skip\n"
            "token_file: ~/tok.json\n"
        ))
        config = Config.load(path)
        assert config.course_ids == ["681205615668", "684704532100"]
        assert config.course_names == {"681205615668": "Data Comm"}
        assert config.max_concurrency == 3
        assert config.skip_failed_courses is True
        assert config.token_file == os.path.expanduser("~/tok.json")

    def test_duplicate_courses_listed_once(self):
        config = Config({"courses": ["C1", {"id": "C1", "name": "dup"}, "C2"]})
        assert config.course_ids == ["C1", "C2"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.load(str(tmp_path / "nope.yaml"))

    def test_empty_file(self, tmp_path):
        path = write_config(tmp_path, "")
        with pytest.raises(ConfigError, match="at least one course"):
            Config.load(path)

    def test_course_without_id(self):
        with pytest.raises(ConfigError, match="without a valid id"):
            Config({"courses": [{"name": "Graphics"}]})

    def test_invalid_policy(self):
        with pytest.raises(ConfigError, match="on_course_error"):
            Config({"courses": ["C1"], "on_course_error": "retry"})

    @pytest.mark.parametrize("value", [0, -1, "many"])
    def test_invalid_concurrency(self, value):
        with pytest.raises(ConfigError, match="max_concurrency"):
            Config({"courses": ["C1"], "max_concurrency": value})

    def test_permissive_permissions_warn(self, tmp_path):
        path = write_config(tmp_path, "courses: [C1]\n")
        os.chmod(path, 0o644)
        with pytest.warns(UserWarning, match="permissive permissions"):
            Config.load(path)

    @pytest.mark.parametrize("courses", [681205615668, "681205615668", {"681205615668": "Data Comm"}])
    def test_courses_must_be_a_list(self, courses):
        with pytest.raises(ConfigError, match="must be a list"):
            Config({"courses": courses})

    @pytest.mark.parametrize("entry", [True, 1.5, ["C1"], {"id": None}])
    def test_invalid_course_id(self, entry):
        with pytest.raises(ConfigError, match="without a valid id"):
            Config({"courses": [entry]})

    def test_fractional_timeout_kept(self):
        assert Config({"courses": ["C1"], "timeout": 2.5}).timeout == 2.5

    @pytest.mark.parametrize("value", [0, -3, "soon", True])
    def test_invalid_timeout(self, value):
        with pytest.raises(ConfigError, match="timeout"):
            Config({"courses": ["C1"], "timeout": value})

    def test_fractional_concurrency_rejected(self):
        with pytest.raises(ConfigError, match="must be an integer"):
            Config({"courses": ["C1"], "max_concurrency": 2.5})

    def test_oauth_port(self):
        assert Config({"courses": ["C1"]}).oauth_port == 0
        assert Config({"courses": ["C1"], "oauth_port": 8765}).oauth_port == 8765

    @pytest.mark.parametrize("value", [-1, 70000, "any"])
    def test_invalid_oauth_port(self, value):
        with pytest.raises(ConfigError, match="oauth_port"):
            Config({"courses": ["C1"], "oauth_port": value})
