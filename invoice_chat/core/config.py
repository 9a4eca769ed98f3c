from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    app_name: str = Field("invoice-chat", alias="APP_NAME")
    app_env: str = Field("dev", alias="APP_ENV")

    # LLM (OpenAI-compatible endpoint)
    llm_base_url: str | None = Field(default=None, alias="LLM_BASE_URL")
    llm_api_key: str | None = Field(default=None, alias="LLM_API_KEY")
    llm_default_model: str = Field("gpt-4o-mini", alias="LLM_DEFAULT_MODEL")
    # Chat model ids sent by the frontend -> provider model names
    llm_models: dict[str, str] = Field(
        default_factory=lambda: {
            "chat-model-small": "gpt-4o-mini",
            "chat-model-large": "gpt-4o",
        },
        alias="LLM_MODELS",
    )
    llm_max_steps: int = Field(5, alias="LLM_MAX_STEPS")

    # Storage
    database_path: str = Field("invoices.db", alias="DATABASE_PATH")

    # Sessions: comma-separated "user_id:token" pairs
    auth_tokens: str = Field("", alias="AUTH_TOKENS")

    attachment_fetch_timeout: float = Field(30.0, alias="ATTACHMENT_FETCH_TIMEOUT")

    # Token cost estimation (USD per 1K tokens)
    token_price_input_per_1k: float = Field(0.03, alias="TOKEN_PRICE_INPUT_PER_1K")
    token_price_output_per_1k: float = Field(0.06, alias="TOKEN_PRICE_OUTPUT_PER_1K")

    # CORS allowed origins (comma-separated list for production deployment)
    cors_origins: str = Field("http://localhost:3000,http://127.0.0.1:3000", alias="CORS_ORIGINS")

    # Observability
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "populate_by_name": True}

    def resolve_model(self, selected_chat_model: str | None) -> str:
        """Map a frontend chat-model id to the provider model name"""
        if not selected_chat_model:
            return self.llm_default_model
        return self.llm_models.get(selected_chat_model, selected_chat_model)

    def session_tokens(self) -> dict[str, str]:
        """Parse AUTH_TOKENS into a token -> user_id mapping"""
        tokens = {}
        for pair in self.auth_tokens.split(","):
            user_id, sep, token = pair.strip().partition(":")
            if sep and user_id and token:
                tokens[token.strip()] = user_id.strip()
        return tokens

settings = Settings()
