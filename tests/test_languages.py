import pytest

from diagram_proxy.errors import UnsupportedLanguage
from diagram_proxy.languages import LanguageMapper


@pytest.fixture
def mapper():
    return LanguageMapper({"plantuml": "plantuml", "puml": "plantuml", "mermaid": "mermaid"})


def test_aliases_share_a_backend_type(mapper):
    assert mapper.resolve("plantuml") == "plantuml"
    assert mapper.resolve("puml") == "plantuml"


def test_case_insensitive_by_default(mapper):
    assert mapper.resolve("PlantUML") == "plantuml"
    assert mapper.resolve("MERMAID") == "mermaid"


def test_case_sensitive_mapping():
    mapper = LanguageMapper({"PlantUML": "plantuml"}, case_sensitive=True)
    assert mapper.resolve("PlantUML") == "plantuml"
    with pytest.raises(UnsupportedLanguage):
        mapper.resolve("plantuml")


@pytest.mark.parametrize("tag", ["", "   ", "bash", "plantuml2", "../plantuml", "mermaid;rm"])
def test_unknown_tags_are_rejected(mapper, tag):
    with pytest.raises(UnsupportedLanguage):
        mapper.resolve(tag)


def test_resolve_is_deterministic_and_side_effect_free(mapper):
    before = dict(mapper.tags())
    assert [mapper.resolve("puml") for _ in range(3)] == ["plantuml"] * 3
    assert dict(mapper.tags()) == before


def test_conflicting_tags_after_folding():
    with pytest.raises(ValueError):
        LanguageMapper({"dot": "graphviz", "DOT": "ditaa"})


@pytest.mark.parametrize("case_sensitive", [False, True])
def test_surrounding_whitespace_is_not_ignored(case_sensitive):
    mapper = LanguageMapper({"plantuml": "plantuml"}, case_sensitive=case_sensitive)
    for tag in (" plantuml", "plantuml ", "\tplantuml"):
        with pytest.raises(UnsupportedLanguage):
            mapper.resolve(tag)
