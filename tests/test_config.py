from invoice_chat.core.config import Settings
from invoice_chat.services.token_tracker import calculate_token_usage


def test_resolve_model_maps_known_ids():
    s = Settings(LLM_MODELS={"chat-model-small": "small-model"}, LLM_DEFAULT_MODEL="default-model")

    assert s.resolve_model("chat-model-small") == "small-model"
    assert s.resolve_model("provider-native-model") == "provider-native-model"
    assert s.resolve_model(None) == "default-model"
    assert s.resolve_model("") == "default-model"


def test_session_tokens_parses_pairs():
    s = Settings(AUTH_TOKENS="alice:tok-a, bob:tok-b,malformed,:empty")

    assert s.session_tokens() == {"tok-a": "alice", "tok-b": "bob"}


def test_token_usage_cost_uses_configured_prices():
    usage = calculate_token_usage(2000, 1000)

    assert usage.total_tokens == 3000
    # 2 * 0.03 + 1 * 0.06
    assert abs(usage.estimated_cost - 0.12) < 1e-9
