"""Tests for the model catalog."""

import pytest

from ai_service.api.model_registry import (
    ABTestConfig,
    ModelConfig,
    ModelRegistry,
    ModelStatus,
    ModelType,
    register_default_models,
)
from ai_service.core.errors import UnsupportedProviderError
from ai_service.core.interfaces import MLProviderConfig, ProviderKind


def make_model(model_id="m1", **overrides):
    data = {"id": model_id, "name": "Model", "version": "1.0.0", "type": "regression"}
    data.update(overrides)
    return ModelConfig.from_dict(data)


class TestModelConfig:
    def test_string_fields_are_coerced(self):
        model = make_model(status="testing")
        assert model.type == ModelType.REGRESSION
        assert model.status == ModelStatus.TESTING
        assert not model.is_active

    def test_nested_dicts_are_coerced(self):
        model = make_model(
            provider_config={"provider": "azure-ml", "endpoint": "https://x"},
            ab_test={"enabled": True, "traffic_percentage": 20, "champion_model_id": "a"},
        )
        assert isinstance(model.provider_config, MLProviderConfig)
        assert model.provider_config.provider == ProviderKind.AZURE_ML
        assert isinstance(model.ab_test, ABTestConfig)

    def test_invalid_type_is_rejected(self):
        with pytest.raises(ValueError):
            make_model(type="astrology")

    def test_unknown_provider_kind_is_rejected(self):
        with pytest.raises(UnsupportedProviderError):
            make_model(provider_config={"provider": "quantum"})

    def test_traffic_percentage_bounds(self):
        with pytest.raises(ValueError):
            ABTestConfig(enabled=True, traffic_percentage=120)

    def test_to_dict_masks_credentials(self):
        model = make_model(
            provider_config={"provider": "openai", "credentials": {"api_key": "sk-1"}}
        )
        data = model.to_dict()
        assert data["type"] == "regression"
        assert data["provider_config"]["credentials"] == {"api_key": "***"}


class TestModelRegistry:
    def test_register_and_get(self):
        registry = ModelRegistry()
        registry.register(make_model())
        assert registry.get_model("m1").name == "Model"
        assert "m1" in registry
        assert registry.get_model("missing") is None

    def test_register_upserts(self):
        registry = ModelRegistry()
        registry.register(make_model(version="1.0.0"))
        registry.register(make_model(version="2.0.0"))
        assert len(registry) == 1
        assert registry.get_model("m1").version == "2.0.0"

    def test_register_accepts_dict(self):
        registry = ModelRegistry()
        model = registry.register(
            {"id": "m2", "name": "Dict", "version": "1", "type": "nlp"}
        )
        assert model.type == ModelType.NLP

    def test_list_filters(self):
        registry = ModelRegistry()
        registry.register(make_model("a", type="classification"))
        registry.register(make_model("b", type="classification", status="deprecated"))
        registry.register(make_model("c", type="nlp"))

        assert len(registry.list_models()) == 3
        ids = {m.id for m in registry.list_models(model_type="classification")}
        assert ids == {"a", "b"}
        active = registry.list_models(model_type=ModelType.CLASSIFICATION, status="active")
        assert [m.id for m in active] == ["a"]

    def test_update_status(self):
        registry = ModelRegistry()
        registry.register(make_model())
        registry.update_status("m1", ModelStatus.DEPRECATED)
        assert registry.get_model("m1").status == ModelStatus.DEPRECATED

        registry.update_status("missing", "active")
        assert "missing" not in registry

    def test_unregister_and_clear(self):
        registry = ModelRegistry()
        registry.register(make_model("a"))
        registry.register(make_model("b"))

        registry.unregister("a")
        registry.unregister("a")
        assert "a" not in registry

        registry.clear()
        assert len(registry) == 0

    def test_default_models(self):
        registry = ModelRegistry()
        register_default_models(registry)

        assert len(registry) == 5
        assert registry.get_model("sentiment-analysis-v1").type == ModelType.NLP
        assert all(m.is_active for m in registry.list_models())
