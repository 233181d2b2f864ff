"""
credentials
-----------

파이프라인이 주입한 credential 목록에서 사용할 credential 을 고르고,
서비스 계정 키 파일을 다루는 모듈.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from google.oauth2 import service_account

from .logging_utils import get_logger
from .params import ParameterSet, ValidationResult


logger = get_logger(__name__)

CREDENTIALS_PREFIX = "gke-"


@dataclass
class CredentialsParam:
    """커스텀 프로퍼티 중 credential 선택에 쓰이는 부분."""

    credentials: str = ""

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "CredentialsParam":
        value = raw.get("credentials") or ""
        if not isinstance(value, str):
            raise ValueError(f"파라미터 'credentials' 의 타입이 올바르지 않습니다: {value!r}")
        return cls(credentials=value)

    def set_defaults(self, release_name: str) -> None:
        # 릴리즈 이름이 production 이면 gke-production 을 쓰는 관례
        if not self.credentials and release_name:
            self.credentials = CREDENTIALS_PREFIX + release_name

    def validate(self) -> ValidationResult:
        errors: List[str] = []
        if not self.credentials:
            errors.append("credentials 가 설정되지 않았습니다 (릴리즈 이름으로도 유추할 수 없습니다).")
        return ValidationResult(errors=errors)


@dataclass
class Credential:
    name: str
    type: str = ""
    project: str = ""
    region: str = ""
    service_account_keyfile: str = ""
    defaults: Optional[ParameterSet] = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Credential":
        props = raw.get("additionalProperties") or {}
        defaults_raw = props.get("defaults")
        return cls(
            name=raw.get("name") or "",
            type=raw.get("type") or "",
            project=props.get("project") or "",
            region=props.get("region") or "",
            service_account_keyfile=props.get("serviceAccountKeyfile") or "",
            defaults=ParameterSet.from_dict(defaults_raw) if defaults_raw else None,
        )


def parse_credentials(text: str) -> List[Credential]:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"주입된 credential 을 파싱할 수 없습니다: {e}") from e

    if not isinstance(raw, list):
        raise ValueError("주입된 credential 은 JSON 배열이어야 합니다.")

    return [Credential.from_dict(item) for item in raw]


def get_credential_by_name(credentials: List[Credential], name: str) -> Optional[Credential]:
    for c in credentials:
        if c.name == name:
            return c
    return None


def load_service_account(credential: Credential) -> service_account.Credentials:
    """
    credential 의 키 파일(JSON 문자열)로부터 google-auth 서비스 계정 credential 을 만든다.
    """
    try:
        info = json.loads(credential.service_account_keyfile)
    except json.JSONDecodeError as e:
        raise ValueError(
            f"credential {credential.name} 의 서비스 계정 키 파일을 파싱할 수 없습니다: {e}"
        ) from e

    if not isinstance(info, dict) or not isinstance(info.get("client_email"), str):
        raise ValueError(
            f"credential {credential.name} 의 서비스 계정 키 파일에 client_email 이 없습니다."
        )

    return service_account.Credentials.from_service_account_info(info)


def service_account_email(credential: Credential) -> str:
    return load_service_account(credential).service_account_email


def write_key_file(credential: Credential, path: str) -> None:
    logger.info("credential %s 의 키 파일을 저장합니다: %s", credential.name, path)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(credential.service_account_keyfile)
