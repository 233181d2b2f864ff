"""
gcp_functions
-------------

gcloud CLI 인증 및 Cloud Functions 배포/조회 인자를 구성하고 실행하는 모듈.
"""

from __future__ import annotations

from typing import List, Mapping

from .labels import format_key_values
from .logging_utils import get_logger
from .params import ParameterSet
from .subprocess_utils import RunResult, run_command


logger = get_logger(__name__)


def _gcloud(args: List[str], *, stream_output: bool = False) -> RunResult:
    return run_command(["gcloud", *args], stream_output=stream_output)


def activate_service_account(email: str, key_file: str, project: str) -> None:
    """
    서비스 계정 키 파일로 gcloud 를 인증하고, 기본 account/project 를 설정한다.
    """
    logger.info("gcloud 인증: %s", email)
    _gcloud(["auth", "activate-service-account", email, "--key-file", key_file])

    logger.info("gcloud account 설정: %s", email)
    _gcloud(["config", "set", "account", email])

    logger.info("gcloud project 설정: %s", project)
    _gcloud(["config", "set", "project", project])


def build_deploy_arguments(
    params: ParameterSet,
    region: str,
    labels: Mapping[str, str],
) -> List[str]:
    """
    `gcloud functions deploy` 인자 목록을 만든다 (맨 앞의 gcloud 는 제외).

    app 이름이 비어 있으면 gcloud 가 함수 이름 없이 호출되므로 여기서 막는다.
    """
    if not params.app_name:
        raise ValueError(
            "배포할 함수 이름(app)을 결정할 수 없습니다. "
            "app 파라미터, ESTAFETTE_LABEL_APP 또는 ESTAFETTE_GIT_NAME 중 하나가 필요합니다."
        )

    args = [
        "functions",
        "deploy", params.app_name,
        "--region", region,
        "--memory", params.memory,
        "--source", params.source,
        "--timeout", f"{params.timeout_seconds}s",
        "--runtime", params.runtime,
        "--update-labels", format_key_values(labels),
        "--ingress-settings", params.ingress_settings,
    ]

    if params.environment_variables:
        args += ["--set-env-vars", format_key_values(params.environment_variables)]

    if params.service_account:
        args += ["--service-account", params.service_account]

    if params.trigger == "bucket":
        args += ["--trigger-bucket", params.trigger_value]
    else:
        args.append("--trigger-http")

    return args


def build_describe_arguments(app_name: str, region: str) -> List[str]:
    return ["functions", "describe", app_name, "--region", region]


def deploy_function(args: List[str]) -> RunResult:
    logger.info("Cloud Function 배포: %s", args[2])
    return _gcloud(args, stream_output=True)


def describe_function(app_name: str, region: str) -> RunResult:
    logger.info("Cloud Function 조회: %s", app_name)
    return _gcloud(build_describe_arguments(app_name, region), stream_output=True)
