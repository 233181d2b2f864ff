"""
pytest 설정:

로컬 작업 환경에 설치된 다른 버전의 gcf_deploy 패키지가 존재할 때,
`pytest` 실행 시 site-packages 쪽이 먼저 import 되어 테스트가 깨질 수 있다.

테스트는 항상 현재 레포의 소스를 대상으로 해야 하므로, repo root 를 sys.path 최상단에 고정한다.
"""

from __future__ import annotations

import json
import os
import sys

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


KEYFILE = json.dumps(
    {
        "type": "service_account",
        "client_email": "deployer@test-project.iam.gserviceaccount.com",
        "private_key": "not-a-real-key",
        "token_uri": "https://oauth2.googleapis.com/token",
    }
)


def credential_dict(name: str = "gke-production", defaults: dict | None = None) -> dict:
    props = {
        "project": "test-project",
        "region": "europe-west1",
        "serviceAccountKeyfile": KEYFILE,
    }
    if defaults is not None:
        props["defaults"] = defaults
    return {"name": name, "type": "kubernetes-engine", "additionalProperties": props}


@pytest.fixture
def pipeline_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> dict[str, str]:
    """파이프라인이 주입하는 최소한의 ESTAFETTE_* 환경변수."""
    env = {
        "ESTAFETTE_EXTENSION_CUSTOM_PROPERTIES": json.dumps({"runtime": "go111"}),
        "ESTAFETTE_CREDENTIALS_KUBERNETES_ENGINE": json.dumps([credential_dict()]),
        "ESTAFETTE_GIT_NAME": "mygitrepo",
        "ESTAFETTE_RELEASE_NAME": "production",
        "KEY_FILE_PATH": str(tmp_path / "key-file.json"),
    }
    for key in list(os.environ):
        if key.startswith("ESTAFETTE_"):
            monkeypatch.delenv(key, raising=False)
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env
