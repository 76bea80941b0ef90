"""
CLI 진입점

명령줄에서 수집기를 실행하고 제어합니다.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from notice_aggregator import __version__
from notice_aggregator.aggregator import AggregationResult, run_aggregator
from notice_aggregator.config import AggregatorConfig
from notice_aggregator.exceptions import ConfigurationException
from notice_aggregator.models.notice import Notice
from notice_aggregator.scheduler.cron import run_scheduled

console = Console()


def load_config(
    config_file: Optional[str],
    env_file: Optional[str],
    rss_dir: Optional[str] = None,
    deadline_days: Optional[int] = None,
    preview: Optional[int] = None,
    verbose: bool = False,
    json_logs: bool = False,
) -> AggregatorConfig:
    """
    설정 로드 후 CLI 옵션 덮어쓰기

    YAML 파일이 있으면 YAML을, 없으면 환경 변수(.env 포함)를 사용합니다.
    """
    if config_file:
        config = AggregatorConfig.from_yaml(Path(config_file))
    else:
        config = AggregatorConfig.from_env(Path(env_file) if env_file else None)

    output_update = {}
    if rss_dir:
        output_update["rss_dir"] = Path(rss_dir)
    if preview is not None:
        output_update["preview_n"] = preview

    update = {}
    if output_update:
        update["output"] = config.output.model_copy(update=output_update)
    if deadline_days is not None:
        update["deadline_days"] = deadline_days
    if verbose:
        update["logging"] = config.logging.model_copy(update={"level": "DEBUG"})
    if json_logs:
        update["monitoring"] = config.monitoring.model_copy(update={"json_logging": True})

    return config.model_copy(update=update) if update else config


@click.group()
@click.version_option(version=__version__, prog_name="notice-aggregator")
def cli():
    """
    공모전·대외활동 수집기

    위비티, 캠퍼스픽, 데이콘에서 마감이 임박한 공고를 모아
    소스별 RSS와 통합 RSS를 생성합니다.
    """
    pass


@cli.command()
@click.option(
    "--rss-dir", "-o",
    type=click.Path(),
    default=None,
    help="RSS 출력 디렉토리"
)
@click.option(
    "--deadline-days", "-d",
    type=int,
    default=None,
    help="마감까지 남은 일수 상한"
)
@click.option(
    "--preview", "-n",
    type=int,
    default=None,
    help="콘솔 프리뷰 항목 수"
)
@click.option(
    "--config", "-c", "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML 설정 파일"
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help=".env 파일 경로"
)
@click.option(
    "--json-logs",
    is_flag=True,
    help="JSON 형식 로그 출력"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="상세 로그 출력"
)
def run(
    rss_dir: Optional[str],
    deadline_days: Optional[int],
    preview: Optional[int],
    config_file: Optional[str],
    env_file: Optional[str],
    json_logs: bool,
    verbose: bool,
):
    """
    수집 1회 실행

    모든 소스를 수집하고 RSS 파일을 저장한 뒤 프리뷰를 출력합니다.
    """
    try:
        config = load_config(
            config_file, env_file, rss_dir, deadline_days, preview, verbose, json_logs
        )
    except ConfigurationException as e:
        raise click.ClickException(str(e))

    console.print(f"[bold blue]공고 수집기 v{__version__}[/bold blue]")
    console.print(f"RSS 디렉토리: {config.output.rss_dir}")
    console.print(f"마감 기준: {config.deadline_days}일 이내")
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("수집 중...", total=None)
        try:
            result = asyncio.run(run_aggregator(config))
        except KeyboardInterrupt:
            console.print("\n[yellow]사용자에 의해 중단됨[/yellow]")
            return
        progress.update(task, completed=True)

    _print_preview(result.preview[:config.output.preview_n])
    console.print()
    _print_summary(result)


@cli.command()
@click.option(
    "--mode", "-m",
    type=click.Choice(["interval", "cron"]),
    default="interval",
    help="스케줄 모드"
)
@click.option(
    "--interval", "-i",
    type=int,
    default=60,
    help="실행 간격 (분, interval 모드)"
)
@click.option(
    "--cron", "-c",
    type=str,
    default="0 */6 * * *",
    help="cron 표현식 (cron 모드)"
)
@click.option(
    "--no-immediate",
    is_flag=True,
    help="시작 시 즉시 실행하지 않음"
)
@click.option(
    "--rss-dir", "-o",
    type=click.Path(),
    default=None,
    help="RSS 출력 디렉토리"
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help=".env 파일 경로"
)
def schedule(
    mode: str,
    interval: int,
    cron: str,
    no_immediate: bool,
    rss_dir: Optional[str],
    env_file: Optional[str],
):
    """
    스케줄된 수집 실행

    지정된 주기로 자동으로 수집을 실행합니다.
    """
    try:
        config = load_config(None, env_file, rss_dir)
    except ConfigurationException as e:
        raise click.ClickException(str(e))

    config.ensure_directories()

    console.print("[bold blue]스케줄러 시작[/bold blue]")
    console.print(f"모드: {mode}")
    if mode == "interval":
        console.print(f"간격: {interval}분")
    else:
        console.print(f"cron: {cron}")
    console.print(f"RSS 디렉토리: {config.output.rss_dir}")
    console.print()
    console.print("[dim]Ctrl+C로 중지[/dim]")
    console.print()

    try:
        asyncio.run(run_scheduled(
            config=config,
            mode=mode,
            interval_minutes=interval,
            cron_expression=cron,
            run_immediately=not no_immediate,
        ))
    except ValueError as e:
        raise click.ClickException(str(e))
    except KeyboardInterrupt:
        console.print("\n[yellow]스케줄러 중지됨[/yellow]")


def _print_preview(notices: List[Notice]) -> None:
    """마감 임박 공고 프리뷰 출력"""
    if not notices:
        console.print("[yellow]조건에 맞는 공고가 없습니다[/yellow]")
        return

    table = Table(title=f"공고 프리뷰 (상위 {len(notices)}건)")
    table.add_column("소스", style="cyan")
    table.add_column("종류", style="magenta")
    table.add_column("제목", style="white")
    table.add_column("주최", style="white")
    table.add_column("기간", style="green")
    table.add_column("URL", style="dim")

    for notice in notices:
        table.add_row(
            notice.source.value,
            notice.kind_label,
            notice.title,
            notice.organizer or "-",
            f"{notice.start or '?'} ~ {notice.end or '?'}",
            notice.url,
        )

    console.print(table)


def _print_summary(result: AggregationResult) -> None:
    """소스별 수집 요약 출력"""
    table = Table(title="수집 요약")
    table.add_column("항목", style="cyan")
    table.add_column("값", style="white")

    for name, count in result.counts.items():
        status = " [yellow](건너뜀)[/yellow]" if name in result.skipped else ""
        table.add_row(name, f"{count}건{status}")
    table.add_row("통합", f"{len(result.merged)}건")
    table.add_row("저장된 피드", "\n".join(result.feeds) or "-")

    console.print(table)


def main():
    """메인 진입점"""
    cli()


if __name__ == "__main__":
    main()
