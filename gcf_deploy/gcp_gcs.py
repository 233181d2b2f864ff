"""
gcp_gcs
-------

bucket 트리거의 대상 GCS 버킷 존재 여부를 점검하는 모듈.
"""

from __future__ import annotations

from typing import Optional

from google.auth.credentials import Credentials
from google.cloud import storage

from .logging_utils import get_logger
from .params import ParameterSet


logger = get_logger(__name__)


def check_trigger_bucket(
    params: ParameterSet,
    project: str,
    credentials: Optional[Credentials] = None,
) -> str:
    """
    트리거 버킷 존재 여부를 확인만 하고, 생성하지 않는다.
    """
    if params.trigger != "bucket":
        return f"GCS: trigger={params.trigger or '(not set)'} (체크 건너뜀)"

    if not params.trigger_value:
        return "GCS: triggerValue 가 설정되지 않았습니다."

    logger.info("트리거 버킷 확인: %s", params.trigger_value)
    client = storage.Client(project=project, credentials=credentials)
    bucket = client.bucket(params.trigger_value)

    if bucket.exists():
        return f"GCS: 버킷 존재함 ({params.trigger_value})"
    return f"GCS: 버킷 없음 ({params.trigger_value})"
