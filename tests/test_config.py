import pytest

from diagram_proxy.config import DEFAULT_LANGUAGES, Settings, load_settings, parse_languages


def test_defaults_from_empty_environment():
    settings = load_settings({})
    assert settings.max_file_bytes == 256 * 1024
    assert settings.max_total_bytes == 1024 * 1024
    assert settings.max_include_depth == 10
    assert settings.backend_transport == "post"
    assert settings.mode == "development"
    assert settings.languages["puml"] == "plantuml"


def test_environment_overrides(tmp_path):
    settings = load_settings(
        {
            "DIAGRAMS_BASE_DIR": str(tmp_path),
            "DIAGRAMS_MAX_FILE_BYTES": "10",
            "DIAGRAMS_MAX_TOTAL_BYTES": "20",
            "DIAGRAMS_MAX_INCLUDE_DEPTH": "2",
            "DIAGRAMS_BACKEND_URL": "http://kroki:8000/",
            "DIAGRAMS_BACKEND_TIMEOUT_SECONDS": "1.5",
            "DIAGRAMS_BACKEND_TRANSPORT": "GET",
            "DIAGRAMS_LANGUAGES": "uml=plantuml, flow=mermaid",
            "DIAGRAMS_LANG_CASE_SENSITIVE": "true",
            "DIAGRAMS_MODE": "production",
        }
    )
    assert settings.base_dir == tmp_path.resolve()
    assert settings.max_file_bytes == 10
    assert settings.max_include_depth == 2
    assert settings.backend_url == "http://kroki:8000"
    assert settings.backend_timeout_seconds == 1.5
    assert settings.backend_transport == "get"
    assert dict(settings.languages) == {"uml": "plantuml", "flow": "mermaid"}
    assert settings.lang_case_sensitive is True
    assert settings.is_production


def test_settings_are_immutable(tmp_path):
    mapping = {"uml": "plantuml"}
    settings = Settings(base_dir=tmp_path, languages=mapping)
    mapping["evil"] = "x"
    assert "evil" not in settings.languages
    with pytest.raises(TypeError):
        settings.languages["other"] = "y"
    with pytest.raises(AttributeError):
        settings.max_file_bytes = 1


@pytest.mark.parametrize(
    "env",
    [
        {"DIAGRAMS_MODE": "staging"},
        {"DIAGRAMS_BACKEND_TRANSPORT": "carrier-pigeon"},
        {"DIAGRAMS_MAX_FILE_BYTES": "0"},
        {"DIAGRAMS_BACKEND_TIMEOUT_SECONDS": "-1"},
        {"DIAGRAMS_LANG_CASE_SENSITIVE": "maybe"},
    ],
)
def test_invalid_values_fail_at_startup(env):
    with pytest.raises(ValueError):
        load_settings(env)


def test_parse_languages_rejects_malformed_entries():
    with pytest.raises(ValueError):
        parse_languages("plantuml")
    with pytest.raises(ValueError):
        parse_languages(" , ")


def test_default_table_has_aliases():
    assert DEFAULT_LANGUAGES["plantuml"] == DEFAULT_LANGUAGES["puml"]
    assert DEFAULT_LANGUAGES["mermaid"] == DEFAULT_LANGUAGES["mmd"]


def test_settings_construct_with_defaults(tmp_path):
    settings = Settings(base_dir=tmp_path)
    assert dict(settings.languages) == dict(DEFAULT_LANGUAGES)
    assert Settings(base_dir=tmp_path).languages is not settings.languages
