"""Command line script for VisitorHub."""
import os
import shutil
import sys
from argparse import ArgumentParser, Namespace, RawTextHelpFormatter
from pathlib import Path
from textwrap import dedent
from typing import Optional, Sequence

import uvicorn

from visitorhub.config import Config, set_config
from visitorhub.core import VisitorHubError
from visitorhub.logging import get_logger
from visitorhub.utils import Fore, bold, fg

YELLOW, CYAN, RED, GREEN = Fore.YELLOW, Fore.CYAN, Fore.RED, Fore.GREEN
WHITE_EX, CYAN_EX = Fore.LIGHTWHITE_EX, Fore.LIGHTCYAN_EX

APP_NAME = "visitorhub.__main__:app"

logger = get_logger("visitorhub.command")


class VisitorHubCommand:
    def __init__(self, path: Optional[Path] = None):
        """현재 경로의 ``setup.cfg`` 와 환경변수에서 설정을 읽습니다."""
        self.path = path or Path(os.path.abspath("."))
        self.config = Config.load_from_config(self.path)
        set_config(self.config)

    def banner(self, msg, icon=""):
        """배너를 표시합니다."""
        if os.name == "nt":
            icon = ""
        term_width = shutil.get_terminal_size().columns
        banner_width = min(75, term_width)
        print("─" * banner_width)
        print(f"{icon} {msg}")
        print("─" * banner_width)

    def info(self):
        """VisitorHub 앱 설정 정보를 출력합니다."""
        dot = bold("-", YELLOW)
        config = self.config
        self.banner(f"{bold('VisitorHub Information')}", icon="💡")
        print(dot, fg("Name", CYAN), "        :", fg(config.name, WHITE_EX))
        print(dot, fg("Title", CYAN), "       :", fg(config.title, WHITE_EX))
        print(dot, fg("Database", CYAN), "    :", fg(config.get_db_url(), WHITE_EX))
        print(dot, fg("Tenant mode", CYAN), " :", fg(config.tenant_mode, WHITE_EX))
        print(
            dot,
            fg("Notification", CYAN),
            ":",
            fg(config.notification_backend, WHITE_EX),
        )
        print(dot, fg("API", CYAN), "         :", fg(config.get_api_url(), WHITE_EX))

    def initdb(self, drop=False):
        """데이터베이스 테이블을 생성합니다.

        --drop 옵션을 주면 기존 테이블을 모두 지우고 다시 만듭니다.
        """
        from visitorhub import orm

        bullet = bold("✓" if os.name != "nt" else "v", GREEN)
        orm.init_db(drop_all=drop, config=self.config)
        tables = len(orm.metadata.tables) if orm.metadata else 0
        logger.info(
            f"{bullet} init {fg('database', CYAN)}.. %s (%s tables)",
            bold(self.config.get_db_url(), YELLOW),
            tables,
        )

    def run(self, app_name: Optional[str] = None, dry_run=False, reload=False, banner=True):
        """VisitorHub API 서버를 실행합니다."""
        if banner:
            msg = "".join(
                [
                    bold("Launching VisitorHub: ", CYAN),
                    bold(self.config.title, Fore.WHITE),
                ]
            )
            self.banner(msg, icon="🚀")

        if not dry_run:
            uvicorn.run(
                app_name or APP_NAME,
                host=self.config.api_host,
                port=self.config.api_port,
                reload=reload,
            )


class VisitorHubCommandParser:
    """콘솔 커맨드 명령어 파서.

    실제 작업은 `VisitorHubCommand` 객체에 위임합니다.
    """

    def __init__(self, cmd: Optional[VisitorHubCommand] = None):
        """기본 생성자."""
        self.parser = ArgumentParser(
            "visitorhub",
            description=f"✨ {bold('VisitorHub')} : {fg('command line utility', CYAN_EX)}",
        )
        self._subparsers = self.parser.add_subparsers(dest="command")
        self._cmd = cmd or VisitorHubCommand()

        # init subparsers
        for handler in [
            self._cmd.info,
            self._cmd.initdb,
            self._cmd.run,
        ]:
            command = handler.__name__
            # 핸들러 함수의 주석을 커맨드라인 도움말로 변환하기 위한 작업입니다.
            doc = None
            if handler.__doc__:
                lines = handler.__doc__.splitlines()
                doc = lines[0] + "\n" + dedent("\n".join(lines[1:]))
            parser = self._subparsers.add_parser(
                command,
                description=doc,
                formatter_class=RawTextHelpFormatter,
            )
            if command == "initdb":
                parser.add_argument(
                    "--drop", action="store_true", help="기존 테이블을 지우고 다시 생성"
                )
            if command == "run":
                parser.add_argument("app_name", metavar="app_name", nargs="?")
                parser.add_argument(
                    "--reload", action="store_true", help="소스 변경시 자동 재시작"
                )

    def parse_args(self, args: Sequence[str]):
        """콘솔 명령어를 해석해서 적절한 작업을 수행합니다."""
        if not args:
            self.parser.print_help()
            return

        ns = self.parser.parse_args(args)
        try:
            if hasattr(self, ns.command):
                # 커맨드 명령어와 동일한 이름의 메소드가 파서 클래스에 있으면
                # 그 메소드를 호출해서 적당한 처리 후 실제 메소드를 호출합니다.
                getattr(self, ns.command)(ns)
            else:
                getattr(self._cmd, ns.command)()
        except VisitorHubError as e:
            print(
                f"{bold('VisitorHub ERROR:', RED)} {fg(e.message, YELLOW)}",
                file=sys.stderr,
            )

    def initdb(self, ns: Namespace):
        """`initdb` 명령어 처리."""
        self._cmd.initdb(drop=ns.drop)

    def run(self, ns: Namespace):
        """`run` 명령어 처리."""
        self._cmd.run(app_name=ns.app_name, reload=ns.reload)


def console_main():
    parser = VisitorHubCommandParser()
    parser.parse_args(sys.argv[1:])


if __name__ == "__main__":
    console_main()
