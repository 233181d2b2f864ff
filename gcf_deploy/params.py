"""
params
------

커스텀 프로퍼티(매니페스트)로 전달된 배포 파라미터를 표현하고,
credential 기본값 → 매니페스트 값 → 관례 기본값 순서로 병합한 뒤 검증한다.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Union


SUPPORTED_RUNTIMES = ("nodejs8", "nodejs10", "python37", "go111")
SUPPORTED_MEMORY = ("128MB", "256MB", "512MB", "1024MB", "2048MB")
SUPPORTED_TRIGGERS = ("http", "bucket")
SUPPORTED_INGRESS_SETTINGS = ("all", "internal-only")

MAX_TIMEOUT_SECONDS = 540

DEFAULT_TRIGGER = "http"
DEFAULT_MEMORY = "256MB"
DEFAULT_SOURCE = "."
DEFAULT_TIMEOUT_SECONDS = 60
DEFAULT_INGRESS_SETTINGS = "all"

EnvValue = Union[str, int, float, bool]


@dataclass
class ParameterSet:
    dry_run: bool = False
    app_name: str = ""
    runtime: str = ""
    trigger: str = ""
    trigger_value: str = ""
    memory: str = ""
    service_account: str = ""
    source: str = ""
    ingress_settings: str = ""
    timeout_seconds: int = 0
    environment_variables: Dict[str, EnvValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ParameterSet":
        return overlay(None, raw)


@dataclass(frozen=True)
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# JSON 키 -> (속성명, 허용 타입)
_FIELDS: Dict[str, tuple] = {
    "dryrun": ("dry_run", (bool,)),
    "app": ("app_name", (str,)),
    "runtime": ("runtime", (str,)),
    "trigger": ("trigger", (str,)),
    "triggerValue": ("trigger_value", (str,)),
    "memory": ("memory", (str,)),
    "serviceAccount": ("service_account", (str,)),
    "source": ("source", (str,)),
    "ingressSettings": ("ingress_settings", (str,)),
    "timeoutSeconds": ("timeout_seconds", (int,)),
}
_ENV_KEY = "env"


def _check_type(key: str, value: Any, types: tuple) -> None:
    # bool 은 int 의 서브클래스이므로 숫자 필드에서는 따로 걸러낸다.
    if bool not in types and isinstance(value, bool):
        raise ValueError(f"파라미터 '{key}' 의 타입이 올바르지 않습니다: {value!r}")
    if not isinstance(value, types):
        raise ValueError(f"파라미터 '{key}' 의 타입이 올바르지 않습니다: {value!r}")


def overlay(base: Optional[ParameterSet], raw: Mapping[str, Any]) -> ParameterSet:
    """
    base(credential 기본값)를 복사한 뒤, raw 에 존재하는 키만 덮어쓴 새 ParameterSet 을 돌려준다.

    - base 는 변경하지 않는다.
    - env 는 키 단위로 병합한다 (raw 쪽이 우선).
    - 알 수 없는 키(credentials 등)는 무시한다.
    - null 값은 키가 없는 것과 동일하게 취급한다.
    """
    if base is None:
        params = ParameterSet()
    else:
        params = replace(base, environment_variables=dict(base.environment_variables))

    for key, (attr, types) in _FIELDS.items():
        value = raw.get(key)
        if value is None:
            continue
        _check_type(key, value, types)
        setattr(params, attr, value)

    env = raw.get(_ENV_KEY)
    if env is not None:
        if not isinstance(env, Mapping):
            raise ValueError(f"파라미터 '{_ENV_KEY}' 는 key/value 객체여야 합니다: {env!r}")
        for name, value in env.items():
            if not isinstance(value, (str, int, float, bool)):
                raise ValueError(
                    f"환경변수 '{name}' 의 값은 문자열/숫자/불리언이어야 합니다: {value!r}"
                )
            params.environment_variables[str(name)] = value

    return params


def apply_defaults(
    params: ParameterSet,
    git_name: str = "",
    app_label: str = "",
    estafette_labels: Optional[Mapping[str, str]] = None,  # noqa: ARG001
) -> ParameterSet:
    """
    비어 있는 필드만 관례 기본값으로 채운다. 이미 값이 있는 필드는 건드리지 않는다.
    """
    if not params.app_name:
        if app_label:
            params.app_name = app_label
        elif git_name:
            params.app_name = git_name

    if not params.trigger:
        params.trigger = DEFAULT_TRIGGER
    if not params.memory:
        params.memory = DEFAULT_MEMORY
    if not params.source:
        params.source = DEFAULT_SOURCE
    if params.timeout_seconds <= 0:
        params.timeout_seconds = DEFAULT_TIMEOUT_SECONDS
    if not params.ingress_settings:
        params.ingress_settings = DEFAULT_INGRESS_SETTINGS

    return params


def _not_supported(name: str, value: str, supported: tuple) -> str:
    return f"{name} '{value}' 은(는) 지원되지 않습니다. 허용 값: {', '.join(supported)}"


def validate(params: ParameterSet) -> ValidationResult:
    """
    모든 검사를 수행하고 위반 사항을 한 번에 모아 돌려준다. 예외는 던지지 않는다.
    """
    errors: List[str] = []
    warnings: List[str] = []

    if params.runtime not in SUPPORTED_RUNTIMES:
        errors.append(_not_supported("runtime", params.runtime, SUPPORTED_RUNTIMES))

    if params.memory not in SUPPORTED_MEMORY:
        errors.append(_not_supported("memory", params.memory, SUPPORTED_MEMORY))

    if params.trigger not in SUPPORTED_TRIGGERS:
        errors.append(_not_supported("trigger", params.trigger, SUPPORTED_TRIGGERS))

    if params.trigger == "bucket" and not params.trigger_value:
        errors.append("trigger 가 bucket 이면 triggerValue(버킷 이름)가 필요합니다.")

    if params.timeout_seconds <= 0 or params.timeout_seconds > MAX_TIMEOUT_SECONDS:
        errors.append(
            f"timeoutSeconds {params.timeout_seconds} 은(는) "
            f"0 보다 크고 {MAX_TIMEOUT_SECONDS} 이하여야 합니다."
        )

    if params.ingress_settings not in SUPPORTED_INGRESS_SETTINGS:
        errors.append(
            _not_supported("ingressSettings", params.ingress_settings, SUPPORTED_INGRESS_SETTINGS)
        )

    return ValidationResult(errors=errors, warnings=warnings)
