import os
import sys

import click

from .config import load_env_files, ExtensionConfig
from .logging_utils import setup_logging, get_logger
from .orchestrator import ParameterValidationError, check_all, plan_all, resolve, run


logger = get_logger(__name__)


@click.group(invoke_without_command=True)
@click.option(
    "-C",
    "--chdir",
    "chdir",
    type=click.Path(file_okay=False, dir_okay=True, exists=True),
    default=".",
    help="작업 디렉토리 (기본: 현재 디렉토리). .env / .env.local 을 여기서 찾습니다.",
)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="로그 레벨을 DEBUG로 올립니다.",
)
@click.pass_context
def main(ctx: click.Context, chdir: str, verbose: int) -> None:
    """Estafette 파이프라인용 Google Cloud Function 배포 익스텐션"""
    load_env_files(chdir)
    setup_logging(verbose, os.getenv("ESTAFETTE_LOG_FORMAT", "plaintext"))
    ctx.ensure_object(dict)
    ctx.obj["chdir"] = chdir
    ctx.obj["verbose"] = verbose

    # 파이프라인은 인자 없이 컨테이너를 실행하므로 기본 동작은 deploy
    if ctx.invoked_subcommand is None:
        ctx.invoke(deploy)


def _load_config() -> ExtensionConfig:
    cfg = ExtensionConfig.from_env()
    logger.debug("Config loaded: release=%s labels=%s", cfg.release_name, cfg.estafette_labels)
    return cfg


@main.command()
@click.option(
    "--dry-run",
    "dry_run",
    is_flag=True,
    help="gcloud 배포 명령을 실행하지 않고 인자만 출력합니다. (파라미터 dryrun 과 동일)",
)
def deploy(dry_run: bool = False) -> None:
    """파라미터를 해석/검증한 뒤 Cloud Function 을 생성/업데이트"""
    try:
        cfg = _load_config()
    except Exception as e:  # noqa: BLE001
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    try:
        summary = run(cfg, dry_run=dry_run)
    except ParameterValidationError as e:
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)
    except Exception as e:  # noqa: BLE001
        logger.exception("배포 중 오류 발생")
        click.echo(f"[ERROR] 배포 실패: {e}", err=True)
        sys.exit(1)

    click.echo(summary)


@main.command()
def plan() -> None:
    """해석된 파라미터와 검증 결과를 출력 (gcloud 호출 없음)"""
    try:
        cfg = _load_config()
        res = resolve(cfg)
    except Exception as e:  # noqa: BLE001
        click.echo(f"[ERROR] 설정 로드 실패: {e}", err=True)
        sys.exit(1)

    click.echo(plan_all(res))

    if not res.result.ok:
        sys.exit(1)


@main.command()
def check() -> None:
    """
    배포 전에 파라미터와 트리거 버킷 상태를 점검한다.
    (실제 리소스 생성/변경은 하지 않는다)
    """
    try:
        cfg = _load_config()
        report, has_issues = check_all(cfg)
    except Exception as e:  # noqa: BLE001
        logger.exception("사전 체크 중 오류 발생")
        click.echo(f"[ERROR] 체크 실패: {e}", err=True)
        sys.exit(1)

    click.echo(report)

    # 치명적인 이슈가 있으면 exit 1 로 종료하여 CI 등에서 감지 가능하게 한다.
    if has_issues:
        sys.exit(1)
