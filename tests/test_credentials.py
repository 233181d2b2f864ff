import json
import os
import stat

import pytest

from conftest import KEYFILE, credential_dict
from gcf_deploy import credentials as creds
from gcf_deploy.credentials import (
    Credential,
    CredentialsParam,
    get_credential_by_name,
    parse_credentials,
)


def test_credentials_param_defaults_from_release_name() -> None:
    param = CredentialsParam.from_dict({})
    param.set_defaults("production")

    assert param.credentials == "gke-production"
    assert param.validate().ok


def test_credentials_param_keeps_explicit_value() -> None:
    param = CredentialsParam.from_dict({"credentials": "gke-staging"})
    param.set_defaults("production")

    assert param.credentials == "gke-staging"


def test_credentials_param_invalid_without_name_or_release() -> None:
    param = CredentialsParam.from_dict({})
    param.set_defaults("")

    result = param.validate()
    assert not result.ok
    assert "credentials" in result.errors[0]


def test_parse_credentials_reads_defaults() -> None:
    text = json.dumps(
        [
            credential_dict("gke-staging"),
            credential_dict("gke-production", defaults={"runtime": "python37", "memory": "512MB"}),
        ]
    )

    parsed = parse_credentials(text)

    assert [c.name for c in parsed] == ["gke-staging", "gke-production"]
    assert parsed[0].defaults is None
    assert parsed[1].project == "test-project"
    assert parsed[1].region == "europe-west1"
    assert parsed[1].defaults is not None
    assert parsed[1].defaults.runtime == "python37"


def test_parse_credentials_rejects_invalid_json() -> None:
    with pytest.raises(ValueError):
        parse_credentials("{not json")
    with pytest.raises(ValueError):
        parse_credentials(json.dumps({"name": "gke-production"}))


def test_get_credential_by_name() -> None:
    parsed = parse_credentials(json.dumps([credential_dict("gke-production")]))

    assert get_credential_by_name(parsed, "gke-production") is parsed[0]
    assert get_credential_by_name(parsed, "gke-missing") is None


def test_service_account_email_reads_client_email(monkeypatch: pytest.MonkeyPatch) -> None:
    class _FakeSA:
        def __init__(self, info: dict) -> None:
            self.service_account_email = info["client_email"]

    monkeypatch.setattr(
        creds.service_account.Credentials,
        "from_service_account_info",
        classmethod(lambda cls, info: _FakeSA(info)),
    )

    cred = Credential(name="gke-production", service_account_keyfile=KEYFILE)

    assert creds.service_account_email(cred) == "deployer@test-project.iam.gserviceaccount.com"


def test_service_account_email_requires_client_email() -> None:
    cred = Credential(name="gke-production", service_account_keyfile=json.dumps({"type": "service_account"}))

    with pytest.raises(ValueError) as excinfo:
        creds.service_account_email(cred)
    assert "client_email" in str(excinfo.value)


def test_service_account_email_rejects_non_json_keyfile() -> None:
    cred = Credential(name="gke-production", service_account_keyfile="not json")

    with pytest.raises(ValueError):
        creds.service_account_email(cred)


def test_write_key_file_is_owner_only(tmp_path) -> None:
    path = tmp_path / "key-file.json"
    cred = Credential(name="gke-production", service_account_keyfile=KEYFILE)

    creds.write_key_file(cred, str(path))

    assert path.read_text(encoding="utf-8") == KEYFILE
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
