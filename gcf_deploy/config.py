from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .labels import collect_estafette_labels


ENV_FILES_DEFAULT_ORDER = [".env", ".env.local"]

DEFAULT_KEY_FILE_PATH = "/key-file.json"


def load_env_files(base_dir: str = ".",
                   files: Optional[List[str]] = None) -> None:
    """
    파이프라인 밖(로컬)에서 실행할 때를 위해 .env 계열 파일을 순서대로 로드한다.
    후순위 파일이 같은 키를 덮어쓰지만, 이미 설정된 프로세스 환경변수가 항상 우선한다.
    """
    order = files or ENV_FILES_DEFAULT_ORDER
    # override=False 이므로 후순위 파일부터 로드해야 후순위 값이 남는다.
    for name in reversed(order):
        path = os.path.join(base_dir, name)
        if os.path.exists(path):
            load_dotenv(path, override=False)


@dataclass
class ExtensionConfig:
    # 필수
    params_json: str
    credentials_json: str

    # 선택 (파이프라인이 주입)
    git_name: str = ""
    app_label: str = ""
    release_name: str = ""
    key_file_path: str = DEFAULT_KEY_FILE_PATH

    estafette_labels: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExtensionConfig":
        env = os.environ if environ is None else environ

        missing: List[str] = []
        def req(name: str) -> str:
            val = env.get(name)
            if not val:
                missing.append(name)
            return val or ""

        cfg = cls(
            params_json=req("ESTAFETTE_EXTENSION_CUSTOM_PROPERTIES"),
            credentials_json=req("ESTAFETTE_CREDENTIALS_KUBERNETES_ENGINE"),
            git_name=env.get("ESTAFETTE_GIT_NAME", ""),
            app_label=env.get("ESTAFETTE_LABEL_APP", ""),
            release_name=env.get("ESTAFETTE_RELEASE_NAME", ""),
            key_file_path=env.get("KEY_FILE_PATH") or DEFAULT_KEY_FILE_PATH,
            estafette_labels=collect_estafette_labels(env),
        )

        if missing:
            raise ValueError(
                "필수 환경변수가 누락되었습니다: " + ", ".join(sorted(set(missing)))
            )

        return cfg
