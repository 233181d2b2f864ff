"""
gcf_deploy
----------

Estafette 파이프라인에서 Google Cloud Function 을 배포하는 익스텐션 패키지.
매니페스트 커스텀 프로퍼티와 credential 기본값을 병합/검증한 뒤
gcloud functions deploy 를 실행하는 것을 목표로 한다.
"""

__all__ = [
    "params",
    "orchestrator",
]
