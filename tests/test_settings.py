"""Environment settings loading tests."""

import pytest

from bootstrap.errors import ConfigError
from bootstrap.settings import load_database, load_proxy, load_wordpress


class TestDatabase:
    def test_defaults(self, db_env):
        s = load_database(db_env)
        assert s.database == "app_db"
        assert s.user == "app_user"
        assert s.root_password == "root_pass"
        assert s.port == 3306
        assert s.probe.interval == 1.0
        assert s.probe.max_attempts == 30

    def test_reports_every_missing_value(self):
        with pytest.raises(ConfigError) as exc:
            load_database({"MYSQL_DATABASE": "app_db"})
        assert exc.value.missing == ["MYSQL_USER", "MYSQL_PASSWORD", "MYSQL_ROOT_PASSWORD"]

    def test_blank_counts_as_missing(self, db_env):
        db_env["MYSQL_PASSWORD"] = "   "
        with pytest.raises(ConfigError) as exc:
            load_database(db_env)
        assert exc.value.missing == ["MYSQL_PASSWORD"]

    def test_probe_overrides(self, db_env):
        db_env.update(PROBE_INTERVAL="0.5", PROBE_MAX_ATTEMPTS="7", BOOTSTRAP_RETRIES="0")
        s = load_database(db_env)
        assert s.probe.interval == 0.5
        assert s.probe.max_attempts == 7
        assert s.probe.action_retries == 0

    @pytest.mark.parametrize(
        "name,value",
        [
            ("PROBE_MAX_ATTEMPTS", "0"),
            ("PROBE_MAX_ATTEMPTS", "many"),
            ("PROBE_INTERVAL", "-1"),
            ("PROBE_INTERVAL", "0"),
            ("PROBE_INTERVAL", "nan"),
            ("PROBE_INTERVAL", "inf"),
            ("PROBE_INITIAL_DELAY", "inf"),
            ("MYSQL_PORT", "0"),
            ("MYSQL_PORT", "70000"),
        ],
    )
    def test_invalid_numbers(self, db_env, name, value):
        db_env[name] = value
        with pytest.raises(ConfigError) as exc:
            load_database(db_env)
        assert name in exc.value.invalid

    def test_settings_are_frozen(self, db_env):
        s = load_database(db_env)
        with pytest.raises(AttributeError):
            s.database = "other"


class TestWordPress:
    def test_defaults(self, wp_env):
        s = load_wordpress(wp_env)
        assert s.db_host == "mariadb"
        assert s.db_port == 3306
        assert s.title == "Inception WordPress Site"
        assert s.admin.login == "boss"
        assert s.admin.role == "administrator"
        assert s.author.login == "writer"
        assert s.author.role == "author"
        assert s.probe.interval == 2.0

    def test_root_password_not_required(self, wp_env):
        assert "MYSQL_ROOT_PASSWORD" not in wp_env
        load_wordpress(wp_env)

    def test_missing_accounts(self, wp_env):
        del wp_env["WP_USER"]
        del wp_env["WP_ADMIN_PASSWORD"]
        with pytest.raises(ConfigError) as exc:
            load_wordpress(wp_env)
        assert set(exc.value.missing) == {"WP_USER", "WP_ADMIN_PASSWORD"}

    def test_accounts_must_differ(self, wp_env):
        wp_env["WP_USER"] = wp_env["WP_ADMIN_USER"]
        with pytest.raises(ConfigError) as exc:
            load_wordpress(wp_env)
        assert "WP_USER" in exc.value.invalid

    def test_overrides(self, wp_env):
        wp_env.update(MYSQL_HOST="db", MYSQL_PORT="3307", WP_USER_ROLE="editor", PROBE_INITIAL_DELAY="10")
        s = load_wordpress(wp_env)
        assert (s.db_host, s.db_port) == ("db", 3307)
        assert s.author.role == "editor"
        assert s.probe.initial_delay == 10.0

    def test_wp_timeout_default(self, wp_env):
        assert load_wordpress(wp_env).wp_timeout == 600

    def test_wp_timeout_override(self, wp_env):
        wp_env["WP_TIMEOUT"] = "120"
        assert load_wordpress(wp_env).wp_timeout == 120.0

    @pytest.mark.parametrize("value", ["ten", "0", "-5", "inf"])
    def test_invalid_wp_timeout(self, wp_env, value):
        wp_env["WP_TIMEOUT"] = value
        with pytest.raises(ConfigError) as exc:
            load_wordpress(wp_env)
        assert "WP_TIMEOUT" in exc.value.invalid


class TestProxy:
    def test_domain_required(self):
        with pytest.raises(ConfigError) as exc:
            load_proxy({})
        assert exc.value.missing == ["DOMAIN_NAME"]
        assert "DOMAIN_NAME" in str(exc.value)

    def test_domain(self):
        assert load_proxy({"DOMAIN_NAME": "login.42.fr"}).domain == "login.42.fr"

    def test_retries(self):
        assert load_proxy({"DOMAIN_NAME": "login.42.fr"}).action_retries == 2
        assert load_proxy({"DOMAIN_NAME": "login.42.fr", "BOOTSTRAP_RETRIES": "5"}).action_retries == 5

    def test_invalid_retries(self):
        with pytest.raises(ConfigError) as exc:
            load_proxy({"DOMAIN_NAME": "login.42.fr", "BOOTSTRAP_RETRIES": "-1"})
        assert "BOOTSTRAP_RETRIES" in exc.value.invalid
