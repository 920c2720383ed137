"""Tests for tunnelchat.llm.base"""

from tunnelchat.llm import ModelCatalog, ModelConfig, ModelInfo, is_chat_model


class TestModelConfig:

    def test_defaults(self):
        config = ModelConfig(endpoint="https://x")
        assert config.model == "gemini-2.0-flash"
        assert config.timeout == 60.0
        assert config.headers == {}

    def test_from_dict_accepts_name_or_model(self):
        assert ModelConfig.from_dict({"endpoint": "e", "name": "gemini-2.5-pro"}).model == "gemini-2.5-pro"
        assert ModelConfig.from_dict({"endpoint": "e", "model": "gemini-1.5-pro"}).model == "gemini-1.5-pro"

    def test_from_dict_timeout(self):
        assert ModelConfig.from_dict({"endpoint": "e", "timeout": "12"}).timeout == 12.0


class TestModelInfo:

    def test_from_name(self):
        info = ModelInfo.from_dict({
            "name": "models/gemini-1.5-pro",
            "displayName": "Gemini 1.5 Pro",
            "inputTokenLimit": 1000000,
        })
        assert info.model_id == "gemini-1.5-pro"
        assert info.display_name == "Gemini 1.5 Pro"
        assert info.input_token_limit == 1000000

    def test_from_model_id(self):
        info = ModelInfo.from_dict({"modelId": "gemini-2.0-flash"})
        assert info.model_id == "gemini-2.0-flash"
        assert info.display_name == "gemini-2.0-flash"

    def test_version(self):
        assert ModelInfo("gemini-2.5-pro").version == 2.5
        assert ModelInfo("gemini-2-flash").version == 2.0
        assert ModelInfo("chat-bison").version == 0.0


class TestChatModelFilter:

    def test_excluded_families(self):
        assert not is_chat_model(ModelInfo("gemini-embedding-001"))
        assert not is_chat_model(ModelInfo("gemma-3-27b"))
        assert not is_chat_model(ModelInfo("aqa"))

    def test_requires_generate_content_when_methods_listed(self):
        assert not is_chat_model(ModelInfo("gemini-1.5-pro", supported_methods=["countTokens"]))
        assert is_chat_model(ModelInfo("gemini-1.5-pro", supported_methods=["generateContent"]))
        assert is_chat_model(ModelInfo("gemini-1.5-pro"))

    def test_non_gemini_rejected(self):
        assert not is_chat_model(ModelInfo("chat-bison-001"))


class TestModelCatalog:

    def test_sorted_newest_first(self):
        catalog = ModelCatalog.from_models([
            {"modelId": "gemini-1.5-pro"},
            {"modelId": "gemini-2.5-pro"},
            {"modelId": "gemini-2.5-flash"},
            {"modelId": "gemini-2.0-flash"},
        ])
        assert catalog.model_ids == ["gemini-2.5-flash", "gemini-2.5-pro", "gemini-2.0-flash", "gemini-1.5-pro"]
        assert catalog.default_model == "gemini-2.0-flash"

    def test_default_falls_back_to_newest(self):
        catalog = ModelCatalog.from_models([{"modelId": "gemini-1.5-pro"}, {"modelId": "gemini-2.5-pro"}])
        assert catalog.default_model == "gemini-2.5-pro"

    def test_empty(self):
        catalog = ModelCatalog.from_models([{"modelId": "imagen-3"}, "junk"])
        assert catalog.models == []
        assert catalog.default_model == "gemini-2.0-flash"
