from app.config import MonitorPolicy, Settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ["LLM_PROVIDER", "LOG_SINK_URL", "DECISION_TICK_SECONDS", "CORS_ORIGINS", "LOG_LEVEL"]:
            monkeypatch.delenv(name, raising=False)
        settings = Settings.from_env()
        assert settings.LLM_PROVIDER == "groq"
        assert settings.LOG_SINK_URL is None
        assert settings.DECISION_TICK_SECONDS == 1.0
        assert settings.CORS_ORIGINS == ["http://localhost:3000"]
        assert settings.LOG_LEVEL == "INFO"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "OpenAI")
        monkeypatch.setenv("LOG_SINK_URL", "http://logs.test")
        monkeypatch.setenv("FLUSH_INTERVAL_SECONDS", "2.5")
        monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
        settings = Settings.from_env()
        assert settings.LLM_PROVIDER == "openai"
        assert settings.LOG_SINK_URL == "http://logs.test"
        assert settings.FLUSH_INTERVAL_SECONDS == 2.5
        assert settings.CORS_ORIGINS == ["http://a.test", "http://b.test"]

    def test_bad_number_uses_default(self, monkeypatch):
        monkeypatch.setenv("DECISION_TICK_SECONDS", "soon")
        assert Settings.from_env().DECISION_TICK_SECONDS == 1.0


class TestMonitorPolicy:

    def test_default_thresholds(self):
        policy = MonitorPolicy()
        assert policy.struggle_idle_seconds == 5.0
        assert policy.idea_idle_seconds == 10.0
        assert policy.struggle_ratio_threshold == 0.6
        assert policy.log_soft_cap == 5000
