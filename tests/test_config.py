from retail.config import Settings, load_settings


def test_defaults():
    s = load_settings(env={})
    assert s == Settings()
    assert s.notification_limit == 50
    assert s.gemini_api_key is None


def test_environment():
    s = load_settings(
        env={
            "RETAIL_ERP_BUSINESS_NAME": "Shree Stores",
            "RETAIL_ERP_DEMO_SEED": "42",
            "RETAIL_ERP_LOG_LEVEL": "debug",
            "RETAIL_ERP_ASSISTANT_TIMEOUT": "5",
            "GEMINI_API_KEY": "key-1",
        }
    )
    assert s.business_name == "Shree Stores"
    assert s.demo_seed == 42
    assert s.log_level == "DEBUG"
    assert s.assistant_timeout_seconds == 5
    assert s.gemini_api_key == "key-1"


def test_api_key_fallback_and_bad_numbers():
    s = load_settings(env={"API_KEY": "key-2", "RETAIL_ERP_DEMO_SEED": "many"})
    assert s.gemini_api_key == "key-2"
    assert s.demo_seed == 7


def test_overrides_win_and_unknown_keys_are_ignored():
    s = load_settings(
        env={"RETAIL_ERP_BUSINESS_NAME": "From Env"},
        overrides={"business_name": "From Session", "colour": "blue"},
    )
    assert s.business_name == "From Session"
    assert not hasattr(s, "colour")
