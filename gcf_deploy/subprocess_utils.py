from __future__ import annotations

import queue
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from textwrap import shorten
from typing import Mapping, Sequence

from .logging_utils import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: str
    stderr: str


def _not_found(cmd: Sequence[str]) -> RuntimeError:
    return RuntimeError(
        f"필요한 명령을 찾을 수 없습니다: {cmd[0]} (gcloud 가 설치되어 있는지 확인하세요)"
    )


def _failed(cmd: Sequence[str], returncode: int, output: str, label: str) -> RuntimeError:
    detail = f"\n{label}:\n" + shorten(output, width=2000) if output else ""
    return RuntimeError(f"명령 실행 실패: {' '.join(cmd)} (exit={returncode}){detail}")


def run_command(
    cmd: Sequence[str],
    *,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = 900.0,
    stream_output: bool = False,
) -> RunResult:
    """
    subprocess 실행 공통 유틸.

    - stream_output=False: stdout/stderr 캡처, 실패 시 요약 포함
    - stream_output=True : stdout/stderr 를 합쳐 실시간으로 터미널에 흘린다 (파이프라인 로그용)
    """
    logger.info("명령 실행: %s", " ".join(cmd))

    if stream_output:
        # gcloud 는 stderr 로도 진행 로그를 자주 내보내므로 STDOUT 으로 합친다.
        try:
            proc = subprocess.Popen(  # noqa: S603
                list(cmd),
                cwd=cwd,
                env=dict(env) if env is not None else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except FileNotFoundError as e:
            raise _not_found(cmd) from e

        out_lines: list[str] = []
        started = time.monotonic()
        deadline = None if timeout is None else started + float(timeout)

        q: queue.Queue[str | None] = queue.Queue()

        def _reader() -> None:
            try:
                assert proc.stdout is not None
                for line in proc.stdout:
                    q.put(line)
            finally:
                q.put(None)

        reader_thread = threading.Thread(target=_reader, daemon=True)
        reader_thread.start()

        try:
            while True:
                now = time.monotonic()
                if deadline is not None and now >= deadline:
                    proc.kill()
                    raise RuntimeError(
                        f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}"
                    )

                remaining = None if deadline is None else max(deadline - now, 0.0)
                get_timeout = 0.1 if remaining is None else min(0.1, remaining)

                try:
                    item = q.get(timeout=get_timeout)
                except queue.Empty:
                    continue

                if item is None:
                    break

                out_lines.append(item)
                sys.stdout.write(item)
                sys.stdout.flush()

            reader_thread.join(timeout=1.0)

            wait_timeout = None
            if deadline is not None:
                wait_timeout = max(deadline - time.monotonic(), 0.0)
            returncode = proc.wait(timeout=wait_timeout)
        except subprocess.TimeoutExpired as e:
            proc.kill()
            raise RuntimeError(
                f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}"
            ) from e
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            reader_thread.join(timeout=1.0)
            if proc.stdout is not None:
                proc.stdout.close()

        if returncode != 0:
            raise _failed(cmd, returncode, "".join(out_lines).strip(), "stdout/stderr")

        return RunResult(returncode=returncode, stdout="".join(out_lines), stderr="")

    # capture 모드 (조용히 돌리고 실패 시 요약)
    try:
        result = subprocess.run(  # noqa: S603
            list(cmd),
            check=True,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except FileNotFoundError as e:
        raise _not_found(cmd) from e
    except subprocess.TimeoutExpired as e:
        raise RuntimeError(
            f"명령 실행이 {timeout}초 안에 끝나지 않았습니다: {' '.join(cmd)}"
        ) from e
    except subprocess.CalledProcessError as e:
        stdout = (e.stdout or "").strip()
        stderr = (e.stderr or "").strip()
        if stderr:
            raise _failed(cmd, e.returncode, stderr, "stderr") from e
        raise _failed(cmd, e.returncode, stdout, "stdout") from e

    if result.stdout:
        logger.debug("명령 stdout: %s", shorten(result.stdout.strip(), width=2000))
    if result.stderr:
        logger.debug("명령 stderr: %s", shorten(result.stderr.strip(), width=2000))
    return RunResult(returncode=result.returncode, stdout=result.stdout or "", stderr=result.stderr or "")
