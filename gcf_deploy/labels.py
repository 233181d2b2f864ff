"""
labels
------

ESTAFETTE_LABEL_* 환경변수를 수집하고, GCP 라벨 규칙에 맞게 정리한다.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping


LABEL_ENV_PREFIX = "ESTAFETTE_LABEL_"
DNS_SAFE_SUFFIX = "_DNS_SAFE"
MAX_LABEL_LENGTH = 63

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9\-_.]+")
_LEADING = re.compile(r"^[\-_.]+")
_TRAILING = re.compile(r"[\-_.]+$")


def collect_estafette_labels(environ: Mapping[str, str]) -> Dict[str, str]:
    labels: Dict[str, str] = {}
    for name, value in environ.items():
        if name.startswith(LABEL_ENV_PREFIX) and not name.endswith(DNS_SAFE_SUFFIX):
            key = name[len(LABEL_ENV_PREFIX):].lower()
            labels[key] = value
    return labels


def sanitize_label(value: str) -> str:
    """
    라벨 값은 63자 이하, 비어 있거나 영숫자로 시작/끝나야 하며
    중간에는 영숫자, '-', '_', '.' 만 허용된다.
    """
    value = _INVALID_CHARS.sub("-", value)
    value = value.replace("--", "-")
    value = _LEADING.sub("", value)
    value = value[:MAX_LABEL_LENGTH]
    value = _TRAILING.sub("", value)
    return value


def sanitize_labels(labels: Mapping[str, str]) -> Dict[str, str]:
    return {k: sanitize_label(v) for k, v in labels.items()}


def _format_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_key_values(mapping: Mapping[str, object]) -> str:
    """gcloud 의 KEY=VALUE,... 형식으로 직렬화한다. 키 순서는 정렬해서 고정한다."""
    return ",".join(f"{k}={_format_value(mapping[k])}" for k in sorted(mapping))
