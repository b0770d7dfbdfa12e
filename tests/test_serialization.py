"""
Tests for serialization and deserialization of feature models.

These tests ensure lossless JSON/YAML round-trip using the explicit
serialization functions in `featuremodel.serialization`.
"""

import json

import pytest
import yaml
from featuremodel.model import FeatureModel, UNIVERSAL_MODEL
from featuremodel.examples import build_example_network_model
from featuremodel.expressions import Expression, FeatureReference, TRUE
from featuremodel.serialization import (
    expr_to_dict,
    expr_from_dict,
    model_to_dict,
    model_from_dict,
    model_to_yaml,
    model_from_yaml,
    models_to_json,
    models_to_yaml,
)


def build_sample_model() -> FeatureModel:
    model = build_example_network_model()
    return FeatureModel(
        constraints=model.constraints + (TRUE,),
        internal_features=frozenset({"aux_1"}),
        source="sample.dimacs",
    )


def test_expression_dict_shape():
    assert expr_to_dict(FeatureReference("A")) == {"type": "feature", "name": "A"}
    assert expr_to_dict(TRUE) == {"type": "const", "value": True}


def test_unknown_expression_rejected():
    class Bogus(Expression):
        pass

    with pytest.raises(TypeError):
        expr_to_dict(Bogus())
    with pytest.raises(TypeError):
        expr_from_dict({"type": "lit"})


def test_dict_roundtrip():
    model = build_sample_model()
    restored = model_from_dict(model_to_dict(model))
    assert restored == model
    assert restored.source == "sample.dimacs"
    assert restored.internal_features == frozenset({"aux_1"})


def test_yaml_roundtrip():
    model = build_sample_model()
    assert model_from_yaml(model_to_yaml(model)) == model


def test_models_to_json():
    general = build_sample_model()
    data = json.loads(models_to_json(general, UNIVERSAL_MODEL))
    assert model_from_dict(data["feature_model"]) == general
    assert data["type_system_feature_model"]["constraints"] == []


def test_models_to_yaml():
    data = yaml.safe_load(models_to_yaml(UNIVERSAL_MODEL, UNIVERSAL_MODEL))
    assert set(data) == {"feature_model", "type_system_feature_model"}
