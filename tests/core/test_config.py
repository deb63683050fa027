# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for Config: dot access, env overrides, files, profiles, placeholders and binding."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest

from csrfguard.core.config import Config, config_properties


class TestConfig:
    def test_get_value(self):
        config = Config({"app": {"name": "shop"}})
        assert config.get("app.name") == "shop"

    def test_get_with_default(self):
        config = Config({})
        assert config.get("missing.key", "default") == "default"

    def test_get_section(self):
        config = Config({"csrfguard": {"csrf": {"cookie-name": "xsrf"}}})
        assert config.get_section("csrfguard.csrf") == {"cookie-name": "xsrf"}
        assert config.get_section("csrfguard.missing") == {}

    def test_env_key(self):
        assert Config.env_key("csrfguard.csrf.auth-key") == "CSRFGUARD_CSRF_AUTH_KEY"
        assert Config.env_key("app.name") == "CSRFGUARD_APP_NAME"

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("CSRFGUARD_CSRF_COOKIE_NAME", "from-env")
        config = Config({"csrfguard": {"csrf": {"cookie-name": "from-file"}}})
        assert config.get("csrfguard.csrf.cookie-name") == "from-env"


class TestConfigFiles:
    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "csrfguard.yaml"
        config_file.write_text("csrfguard:\n  csrf:\n    cookie-name: xsrf\n")
        config = Config.from_file(config_file)
        assert config.get("csrfguard.csrf.cookie-name") == "xsrf"
        assert config.get("csrfguard.csrf.path") == "/"

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "csrfguard.toml"
        config_file.write_text('[csrfguard.csrf]\nmax-age = 600\n')
        config = Config.from_file(config_file, load_defaults=False)
        assert config.get("csrfguard.csrf.max-age") == 600
        assert config.get("csrfguard.csrf.path") is None

    def test_missing_file_leaves_defaults(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("csrfguard.csrf.cookie-name") == "_csrf"
        assert len(config.loaded_sources) == 1

    def test_profiles_merge_in_order(self, tmp_path: Path):
        base = tmp_path / "csrfguard.yaml"
        base.write_text("csrfguard:\n  csrf:\n    cookie-name: base\n    path: /app\n")
        (tmp_path / "csrfguard-dev.yaml").write_text("csrfguard:\n  csrf:\n    cookie-name: dev\n")
        (tmp_path / "csrfguard-local.yaml").write_text("csrfguard:\n  csrf:\n    cookie-name: local\n")

        config = Config.from_file(base, active_profiles=["dev", "local", "nonexistent"])
        assert config.get("csrfguard.csrf.cookie-name") == "local"
        assert config.get("csrfguard.csrf.path") == "/app"
        assert len(config.loaded_sources) == 4

    def test_env_vars_still_win(self, tmp_path: Path, monkeypatch):
        base = tmp_path / "csrfguard.yaml"
        base.write_text("csrfguard:\n  csrf:\n    cookie-name: base\n")
        monkeypatch.setenv("CSRFGUARD_CSRF_COOKIE_NAME", "env-wins")
        config = Config.from_file(base)
        assert config.get("csrfguard.csrf.cookie-name") == "env-wins"


class TestPlaceholderResolution:
    def test_resolve_env_var(self, monkeypatch):
        monkeypatch.setenv("CSRF_SECRET", "s3cret")
        config = Config({"csrf": {"auth-key": "${CSRF_SECRET}"}})
        assert config.get("csrf.auth-key") == "s3cret"

    def test_resolve_config_reference(self):
        config = Config({"site": {"host": "example.com"}, "trusted": "api.${site.host}"})
        assert config.get("trusted") == "api.example.com"

    def test_resolve_with_default(self):
        config = Config({"key": "${MISSING_CSRF_VAR:fallback}"})
        assert config.get("key") == "fallback"

    def test_unresolvable_placeholder(self):
        config = Config({"key": "${MISSING_CSRF_VAR}"})
        with pytest.raises(ValueError, match="Cannot resolve"):
            config.get("key")

    def test_max_recursion_guard(self):
        config = Config({"a": "${b}", "b": "${a}"})
        with pytest.raises(ValueError, match="Max recursion"):
            config.get("a")


@config_properties(prefix="shop.cookies")
@dataclass
class CookieSettings:
    name: str = "session"
    max_age: int = 60
    secure: bool = False
    hosts: list[str] = field(default_factory=list)


class TestBind:
    def test_bind_kebab_case_keys(self):
        config = Config({"shop": {"cookies": {"name": "sid", "max-age": 120, "hosts": ["a.example"]}}})
        settings = config.bind(CookieSettings)
        assert settings.name == "sid"
        assert settings.max_age == 120
        assert settings.hosts == ["a.example"]

    def test_bind_uses_defaults(self):
        settings = Config({}).bind(CookieSettings)
        assert settings == CookieSettings()

    def test_env_values_are_coerced(self, monkeypatch):
        monkeypatch.setenv("CSRFGUARD_SHOP_COOKIES_MAX_AGE", "900")
        monkeypatch.setenv("CSRFGUARD_SHOP_COOKIES_SECURE", "true")
        monkeypatch.setenv("CSRFGUARD_SHOP_COOKIES_HOSTS", "a.example, b.example")
        settings = Config({}).bind(CookieSettings)
        assert settings.max_age == 900
        assert settings.secure is True
        assert settings.hosts == ["a.example", "b.example"]

    def test_placeholders_in_bound_values(self, monkeypatch):
        monkeypatch.setenv("COOKIE_NAME", "from-placeholder")
        settings = Config({"shop": {"cookies": {"name": "${COOKIE_NAME}"}}}).bind(CookieSettings)
        assert settings.name == "from-placeholder"

    def test_undecorated_class_is_rejected(self):
        @dataclass
        class Plain:
            value: str = ""

        with pytest.raises(ValueError):
            Config({}).bind(Plain)
