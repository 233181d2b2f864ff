import os
from dataclasses import fields

import pytest

from gcf_deploy.config import DEFAULT_KEY_FILE_PATH, ExtensionConfig, load_env_files


def _base_env() -> dict[str, str]:
    return {
        "ESTAFETTE_EXTENSION_CUSTOM_PROPERTIES": '{"runtime": "go111"}',
        "ESTAFETTE_CREDENTIALS_KUBERNETES_ENGINE": "[]",
    }


def test_missing_required_env_raises_value_error() -> None:
    with pytest.raises(ValueError) as excinfo:
        ExtensionConfig.from_env({"ESTAFETTE_GIT_NAME": "repo"})

    assert "ESTAFETTE_EXTENSION_CUSTOM_PROPERTIES" in str(excinfo.value)
    assert "ESTAFETTE_CREDENTIALS_KUBERNETES_ENGINE" in str(excinfo.value)


def test_from_env_reads_optional_values_and_labels() -> None:
    env = _base_env()
    env.update(
        {
            "ESTAFETTE_GIT_NAME": "mygitrepo",
            "ESTAFETTE_LABEL_APP": "myapp",
            "ESTAFETTE_LABEL_TEAM": "platform",
            "ESTAFETTE_LABEL_TEAM_DNS_SAFE": "platform",
            "ESTAFETTE_RELEASE_NAME": "production",
        }
    )

    cfg = ExtensionConfig.from_env(env)

    assert cfg.git_name == "mygitrepo"
    assert cfg.app_label == "myapp"
    assert cfg.release_name == "production"
    assert cfg.key_file_path == DEFAULT_KEY_FILE_PATH
    assert cfg.estafette_labels == {"app": "myapp", "team": "platform"}


def test_from_env_defaults_to_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key, value in _base_env().items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("KEY_FILE_PATH", "/tmp/key.json")

    cfg = ExtensionConfig.from_env()

    assert cfg.key_file_path == "/tmp/key.json"


def test_load_env_files_later_file_wins_but_process_env_is_kept(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    (tmp_path / ".env").write_text("GCF_TEST_A=from-env\nGCF_TEST_B=from-env\nGCF_TEST_C=from-env\n")
    (tmp_path / ".env.local").write_text("GCF_TEST_B=from-local\n")
    monkeypatch.setenv("GCF_TEST_C", "from-process")
    monkeypatch.delenv("GCF_TEST_A", raising=False)
    monkeypatch.delenv("GCF_TEST_B", raising=False)

    load_env_files(str(tmp_path))

    try:
        assert os.environ["GCF_TEST_A"] == "from-env"
        assert os.environ["GCF_TEST_B"] == "from-local"
        assert os.environ["GCF_TEST_C"] == "from-process"
    finally:
        os.environ.pop("GCF_TEST_A", None)
        os.environ.pop("GCF_TEST_B", None)


def test_config_keeps_only_values_the_extension_uses() -> None:
    env = _base_env()
    env.update({"ESTAFETTE_BUILD_VERSION": "1.0.3", "ESTAFETTE_RELEASE_ID": "42"})

    cfg = ExtensionConfig.from_env(env)

    assert {f.name for f in fields(cfg)} == {
        "params_json",
        "credentials_json",
        "git_name",
        "app_label",
        "release_name",
        "key_file_path",
        "estafette_labels",
    }
