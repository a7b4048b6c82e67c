import pytest

from approvalbridge.config.config import AppSettings
from approvalbridge.config.loader import load_settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for var in (
        "APPROVALBRIDGE_ENV_FILE",
        "APPROVALBRIDGE_PORT",
        "APPROVALBRIDGE_TELEGRAM__BOT_TOKEN",
        "APPROVALBRIDGE_TELEGRAM__CHAT_ID",
        "TELEGRAM_BOT_TOKEN",
        "TELEGRAM_CHAT_ID",
        "PORT",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults_leave_telegram_unconfigured(clean_env):
    cfg = load_settings()

    assert cfg.port == 3000
    assert not cfg.telegram.configured
    assert cfg.approval.timeout_s == 60.0
    assert cfg.approval.batch_limit == 100


def test_nested_env_vars(clean_env):
    clean_env.setenv("APPROVALBRIDGE_TELEGRAM__BOT_TOKEN", "123:abc")
    clean_env.setenv("APPROVALBRIDGE_TELEGRAM__CHAT_ID", "-100200")
    clean_env.setenv("APPROVALBRIDGE_APPROVAL__TIMEOUT_S", "15")

    cfg = AppSettings()

    assert cfg.telegram.configured
    assert cfg.telegram.bot_token.get_secret_value() == "123:abc"
    assert cfg.telegram.chat_id == "-100200"
    assert cfg.approval.timeout_s == 15.0


def test_legacy_env_names_are_accepted(clean_env):
    clean_env.setenv("TELEGRAM_BOT_TOKEN", "legacy-token")
    clean_env.setenv("TELEGRAM_CHAT_ID", "42")
    clean_env.setenv("PORT", "8080")

    cfg = load_settings()

    assert cfg.telegram.configured
    assert cfg.telegram.bot_token.get_secret_value() == "legacy-token"
    assert cfg.telegram.chat_id == "42"
    assert cfg.port == 8080


def test_prefixed_env_wins_over_legacy(clean_env):
    clean_env.setenv("APPROVALBRIDGE_TELEGRAM__CHAT_ID", "new")
    clean_env.setenv("TELEGRAM_CHAT_ID", "old")
    clean_env.setenv("APPROVALBRIDGE_PORT", "9000")
    clean_env.setenv("PORT", "8080")

    cfg = load_settings()

    assert cfg.telegram.chat_id == "new"
    assert cfg.port == 9000


def test_env_file_in_cwd_is_loaded(clean_env, tmp_path):
    (tmp_path / ".env").write_text(
        "APPROVALBRIDGE_TELEGRAM__BOT_TOKEN=file-token\nAPPROVALBRIDGE_TELEGRAM__CHAT_ID=7\n",
        encoding="utf-8",
    )

    cfg = load_settings()

    assert cfg.telegram.configured
    assert cfg.telegram.chat_id == "7"


def test_missing_explicit_env_file_raises(clean_env, tmp_path):
    clean_env.setenv("APPROVALBRIDGE_ENV_FILE", str(tmp_path / "nope.env"))

    with pytest.raises(FileNotFoundError):
        load_settings()


def test_batch_limit_is_bounded(clean_env):
    clean_env.setenv("APPROVALBRIDGE_APPROVAL__BATCH_LIMIT", "500")

    with pytest.raises(ValueError):
        AppSettings()


def test_legacy_names_in_env_file_are_accepted(clean_env, tmp_path):
    (tmp_path / ".env").write_text(
        "TELEGRAM_BOT_TOKEN=abc\nTELEGRAM_CHAT_ID=7\nPORT=8080\n",
        encoding="utf-8",
    )

    cfg = load_settings()

    assert cfg.telegram.configured
    assert cfg.telegram.bot_token.get_secret_value() == "abc"
    assert cfg.telegram.chat_id == "7"
    assert cfg.port == 8080


def test_process_env_overrides_legacy_env_file(clean_env, tmp_path):
    (tmp_path / ".env").write_text("TELEGRAM_CHAT_ID=7\nPORT=8080\n", encoding="utf-8")
    clean_env.setenv("TELEGRAM_CHAT_ID", "99")
    clean_env.setenv("PORT", "9090")

    cfg = load_settings()

    assert cfg.telegram.chat_id == "99"
    assert cfg.port == 9090


def test_get_settings_is_cached_and_feeds_create_app(clean_env):
    from approvalbridge.config.runtime import get_settings
    from approvalbridge.server.app_factory import create_app

    get_settings.cache_clear()
    clean_env.setenv("TELEGRAM_CHAT_ID", "42")
    try:
        first = get_settings()
        assert get_settings() is first

        app = create_app()
        assert app.state.settings is first
        assert app.state.container.settings.telegram.chat_id == "42"
    finally:
        get_settings.cache_clear()
