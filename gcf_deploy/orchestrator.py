from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List

from .config import ExtensionConfig
from .credentials import (
    Credential,
    CredentialsParam,
    get_credential_by_name,
    load_service_account,
    parse_credentials,
    service_account_email,
    write_key_file,
)
from .labels import format_key_values, sanitize_labels
from .logging_utils import get_logger
from .params import ParameterSet, ValidationResult, apply_defaults, overlay, validate
from . import gcp_functions, gcp_gcs


logger = get_logger(__name__)


class ParameterValidationError(ValueError):
    """검증 위반 사항 전체를 한 번에 전달하기 위한 예외."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__("유효하지 않은 파라미터가 있습니다:\n" + "\n".join(f"- {e}" for e in self.errors))


@dataclass
class Resolution:
    credential: Credential
    params: ParameterSet
    result: ValidationResult


def _load_params_json(text: str) -> Dict[str, Any]:
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"커스텀 프로퍼티를 파싱할 수 없습니다: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError("커스텀 프로퍼티는 JSON 객체여야 합니다.")
    return raw


def resolve(cfg: ExtensionConfig) -> Resolution:
    """
    credential 을 고르고, credential 기본값 → 커스텀 프로퍼티 → 관례 기본값 순서로
    파라미터를 병합한 뒤 검증 결과와 함께 돌려준다.

    credential 선택 단계의 문제는 바로 예외로 올리고,
    파라미터 위반 사항은 Resolution.result 에 모아 둔다 (판단은 호출자 몫).
    """
    raw = _load_params_json(cfg.params_json)

    logger.info("credential 파라미터 기본값 설정...")
    cred_param = CredentialsParam.from_dict(raw)
    cred_param.set_defaults(cfg.release_name)

    cred_result = cred_param.validate()
    if not cred_result.ok:
        raise ParameterValidationError(cred_result.errors)

    credentials = parse_credentials(cfg.credentials_json)

    logger.info("credential %s 확인...", cred_param.credentials)
    credential = get_credential_by_name(credentials, cred_param.credentials)
    if credential is None:
        raise ValueError(f"credential {cred_param.credentials} 이(가) 존재하지 않습니다.")

    if credential.defaults is not None:
        logger.info("credential %s 의 기본값을 사용합니다.", credential.name)

    params = overlay(credential.defaults, raw)

    logger.info("매니페스트에 없는 파라미터에 기본값 설정...")
    apply_defaults(params, cfg.git_name, cfg.app_label, cfg.estafette_labels)

    return Resolution(credential=credential, params=params, result=validate(params))


def plan_all(res: Resolution) -> str:
    """
    해석된 파라미터와 검증 결과 요약 텍스트를 리턴한다. 실제 GCP 호출은 하지 않는다.
    """
    p = res.params
    lines: List[str] = []
    lines.append("# Cloud Function deploy plan")
    lines.append(f"- credential: {res.credential.name}")
    lines.append(f"- project: {res.credential.project}")
    lines.append(f"- region: {res.credential.region}")
    lines.append("")

    lines.append("## Parameters")
    lines.append(f"- app: {p.app_name or '(not set)'}")
    lines.append(f"- runtime: {p.runtime or '(not set)'}")
    lines.append(f"- trigger: {p.trigger}")
    if p.trigger == "bucket":
        lines.append(f"- triggerValue: {p.trigger_value or '(not set)'}")
    lines.append(f"- memory: {p.memory}")
    lines.append(f"- source: {p.source}")
    lines.append(f"- timeoutSeconds: {p.timeout_seconds}")
    lines.append(f"- ingressSettings: {p.ingress_settings}")
    lines.append(f"- serviceAccount: {p.service_account or '(default)'}")
    lines.append(f"- env: {format_key_values(p.environment_variables) or '(none)'}")
    lines.append(f"- dryrun: {p.dry_run}")
    lines.append("")

    lines.append("## Validation")
    if res.result.ok:
        lines.append("- OK")
    for e in res.result.errors:
        lines.append(f"- ERROR: {e}")
    for w in res.result.warnings:
        lines.append(f"- WARNING: {w}")

    return "\n".join(lines)


def run(cfg: ExtensionConfig, dry_run: bool = False) -> str:
    """
    파라미터를 해석/검증하고 gcloud 로 Cloud Function 을 배포한다.

    dry_run 이 True 이거나 파라미터 dryrun 이 true 면 gcloud 인자만 로그로 남긴다.
    """
    res = resolve(cfg)

    logger.info("필수 파라미터 검증...")
    if not res.result.ok:
        raise ParameterValidationError(res.result.errors)

    for warning in res.result.warnings:
        logger.warning("Warning: %s", warning)

    params = res.params
    credential = res.credential

    logger.info("서비스 계정 이메일 확인...")
    email = service_account_email(credential)

    labels = sanitize_labels(cfg.estafette_labels)
    args = gcp_functions.build_deploy_arguments(params, credential.region, labels)

    if params.dry_run or dry_run:
        logger.info("Cloud Function %s 배포 dry run...", params.app_name)
        logger.info("gcloud %s", " ".join(args))
        return f"# Dry run\n- gcloud {' '.join(args)}"

    write_key_file(credential, cfg.key_file_path)
    gcp_functions.activate_service_account(email, cfg.key_file_path, credential.project)

    gcp_functions.deploy_function(args)
    gcp_functions.describe_function(params.app_name, credential.region)

    return (
        "# Deploy summary\n"
        f"- function: {params.app_name}\n"
        f"- project: {credential.project}\n"
        f"- region: {credential.region}"
    )


def check_all(cfg: ExtensionConfig) -> tuple[str, bool]:
    """
    실제 배포 없이 파라미터 검증과 트리거 버킷 상태를 점검한다.

    Returns:
        summary: 사람이 읽기 좋은 텍스트 요약
        has_issues: 배포를 막는 이슈가 있는지 여부
    """
    res = resolve(cfg)
    critical: List[str] = list(res.result.errors)

    lines: List[str] = [plan_all(res), ""]

    lines.append("## GCS")
    try:
        creds = load_service_account(res.credential)
        status = gcp_gcs.check_trigger_bucket(res.params, res.credential.project, creds)
        lines.append(f"- {status}")
        if "버킷 없음" in status or "설정되지 않았습니다" in status:
            critical.append(status)
    except Exception as e:  # noqa: BLE001
        msg = f"GCS: 체크 중 예외 발생: {e}"
        lines.append(f"- {msg}")
        critical.append(msg)

    lines.append("")
    lines.append("## Summary")
    if critical:
        lines.append("- 상태: 크리티컬 이슈가 있습니다. 배포 전 반드시 해결해야 합니다.")
        for i in critical:
            lines.append(f"  - {i}")
    else:
        lines.append("- 상태: 주요 이슈 없음 (배포 가능 상태로 보입니다)")

    return "\n".join(lines), bool(critical)
