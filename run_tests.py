#!/usr/bin/env python3
"""
SkillNest Chat 테스트 실행 스크립트

Usage:
    python run_tests.py                # 전체 테스트
    python run_tests.py --unit         # 단위 테스트 (가짜 저장소, WebSocket)
    python run_tests.py --integration  # TestClient 기반 WebSocket 플로우
    python run_tests.py --coverage     # skillnest_chat 커버리지 포함
"""

import argparse
import subprocess
import sys
from pathlib import Path

PYTEST = [sys.executable, "-m", "pytest", "-v", "--tb=short"]


def run_command(cmd, description=""):
    print(f"\n{'=' * 60}")
    print(f"🚀 {description}")
    print(f"{'=' * 60}")
    print(f"실행 명령어: {' '.join(cmd)}\n")

    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        print(f"\n❌ {description} 실패! (exit code: {e.returncode})")
        return False

    print(f"\n✅ {description} 성공!")
    return True


def install_dependencies():
    return run_command(
        [sys.executable, "-m", "pip", "install", "-e", ".[test]"],
        "패키지 및 테스트 의존성 설치"
    )


def select_tests(args):
    """옵션에 맞는 pytest 명령과 설명"""
    if args.unit:
        return PYTEST + ["tests/unit/"], "단위 테스트 실행"
    if args.integration:
        return PYTEST + ["tests/integration/"], "WebSocket 통합 테스트 실행"
    if args.coverage:
        return PYTEST + [
            "tests/", "--cov=skillnest_chat", "--cov-report=term-missing", "--cov-report=html:htmlcov"
        ], "커버리지 포함 테스트 실행"
    if args.quick:
        return PYTEST + ["tests/", "-x"], "빠른 테스트 실행 (실패 시 중단)"
    return PYTEST + ["tests/"], "전체 테스트 실행"


def main():
    parser = argparse.ArgumentParser(description="SkillNest Chat 테스트 실행")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--unit", action="store_true", help="단위 테스트만 실행")
    group.add_argument("--integration", action="store_true", help="통합 테스트만 실행")
    group.add_argument("--coverage", action="store_true", help="커버리지 포함하여 실행")
    group.add_argument("--quick", action="store_true", help="실패 시 즉시 중단")
    parser.add_argument("--install", action="store_true", help="의존성 설치")
    args = parser.parse_args()

    project_root = Path(__file__).parent.absolute()
    print(f"📁 프로젝트 디렉토리: {project_root}")

    success = True
    if args.install:
        success &= install_dependencies()

    cmd, description = select_tests(args)
    success &= run_command(cmd, description)

    print(f"\n{'=' * 60}")
    print("🎉 모든 테스트 통과!" if success else "💥 일부 작업이 실패했습니다. 로그를 확인하세요.")
    print(f"{'=' * 60}")
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
