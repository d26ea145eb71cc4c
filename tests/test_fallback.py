"""
Tests for the local fallback extractor.
"""

import pytest

from app.registry.loader import index_registry
from app.registry.models import FeatureMeta, Registry
from app.registry.shapes import coerce_features
from triage_nlp.fallback import (
    detect_age,
    detect_sex,
    detect_temperature,
    extract_features,
    fallback_extract,
    id_tokens,
    match_bag_of_words,
)
from triage_nlp.text import normalize_str


def _registry(features: dict) -> Registry:
    return index_registry(coerce_features(features))


class TestDemographics:
    def test_male_marker(self):
        assert detect_sex(normalize_str("Paciente do sexo masculino")) == "M"

    def test_single_letter_marker(self):
        assert detect_sex(normalize_str("paciente M, 45 anos")) == "M"

    def test_female_overwrites_male(self):
        assert detect_sex(normalize_str("homem acompanhado da mulher")) == "F"

    def test_no_marker(self):
        assert detect_sex(normalize_str("paciente com febre")) is None

    def test_first_age_wins(self):
        assert detect_age("45 anos, irmão de 50 anos") == 45

    def test_age_abbreviation(self):
        assert detect_age("criança de 7a com otalgia") == 7

    def test_age_out_of_range_is_discarded(self):
        assert detect_age("paciente com 150 anos") is None

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("febre de 38.5 graus C", 38.5),
            ("temperatura 39°C", 39.0),
            ("tax 37 °c", 37.0),
            ("sem febre", None),
        ],
    )
    def test_temperature(self, text, expected):
        assert detect_temperature(text) == expected


class TestPasses:
    def test_id_tokens_strip_diacritics(self):
        assert id_tokens("Tósse_seca.aguda") == ["tosse", "seca", "aguda"]

    def test_bag_of_words_ignores_stop_words(self):
        index = {"dor de garganta": "odinofagia"}
        tokens = set(normalize_str("garganta com muita dor").split())

        assert match_bag_of_words(tokens, index, {"odinofagia"}) == ["odinofagia"]

    def test_bag_of_words_skips_already_matched(self):
        index = {"dor de garganta": "odinofagia"}
        tokens = {"dor", "garganta"}

        assert match_bag_of_words(tokens, index, {"odinofagia"}, {"odinofagia"}) == []

    def test_union_order(self):
        index = {"febre": "febre", "nariz entupido": "obstrucao_nasal"}
        text = normalize_str("febre e entupido o nariz, tosse seca")

        features = extract_features(
            text,
            set(text.split()),
            index,
            ["tosse_seca", "obstrucao_nasal", "febre"],
        )

        assert features == ["febre", "obstrucao_nasal", "tosse_seca"]


class TestFallbackExtract:
    def test_scenario_rinite(self):
        registry = _registry({"rinite_alergica": {"label": "Rinite Alérgica"}})

        result = fallback_extract(
            "paciente M, 45 anos, com rinite alergica e 38.5 graus C",
            registry,
            registry.feature_ids,
        )

        assert "rinite_alergica" in result.features
        assert result.demographics.idade == 45
        assert result.demographics.sexo == "M"
        assert result.modifiers == {"temperatura_c": 38.5}

    def test_feature_found_by_id_tokens_without_alias(self):
        result = fallback_extract("Tosse seca há 3 dias", Registry.empty(), ["tosse_seca"])
        assert result.features == ["tosse_seca"]

    def test_declared_alias(self, registry):
        result = fallback_extract("nariz entupido desde ontem", registry, registry.feature_ids)
        assert result.features == ["obstrucao_nasal"]

    def test_no_features(self, registry):
        result = fallback_extract("sem queixas", registry, registry.feature_ids)

        assert result.features == []
        assert result.modifiers == {}
        assert result.demographics.model_dump() == {"idade": None, "sexo": None, "comorbidades": []}

    def test_empty_text(self, registry):
        result = fallback_extract(None, registry, registry.feature_ids)
        assert result.features == []

    @pytest.mark.parametrize(
        "text",
        [
            "febre alta e dor de garganta, nariz entupido",
            "rinite alergica com obstrucao nasal e febre",
            "dor garganta febre rinite alergica",
        ],
    )
    def test_features_subset_of_allowed(self, registry, text):
        allowed = ("febre", "tosse_seca")

        result = fallback_extract(text, registry, allowed)

        assert set(result.features) <= set(allowed)
        assert "febre" in result.features

    def test_registry_is_not_mutated(self, registry):
        before = dict(registry.alias_to_id)
        fallback_extract("febre alta", registry, registry.feature_ids)
        assert dict(registry.alias_to_id) == before

    def test_meta_is_irrelevant_to_matching(self):
        registry = index_registry({"febre": FeatureMeta()})
        assert fallback_extract("Febre!", registry, ["febre"]).features == ["febre"]
