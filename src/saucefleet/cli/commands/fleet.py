"""Commands for running test fleets on Sauce Labs."""

import asyncio

import typer

from saucefleet.cli.common.config_builder import (
    DEFAULT_PLATFORMS,
    build_config,
    build_job_options,
    build_platforms,
)
from saucefleet.cli.common.context import build_run_context
from saucefleet.cli.common.exits import (
    EXIT_FLEET_FAILED,
    EXIT_TUNNEL_FAILED,
    die,
    exit_from_exc,
    ok_exit,
    warn_exit,
)
from saucefleet.cli.common.options import (
    AccessKeyOpt,
    AdvisorOpt,
    BuildOpt,
    ConfirmOpt,
    CustomDataOpt,
    DryRunOpt,
    FrameworkOpt,
    IdleTimeoutOpt,
    JobRetriesOpt,
    MaxDurationOpt,
    NameOpt,
    PlatformOpt,
    PublicOpt,
    QueueTimeoutOpt,
    RecordScreenshotsOpt,
    RecordVideoOpt,
    SelectOpt,
    StatusIntervalOpt,
    TagOpt,
    ThrottleOpt,
    TunneledOpt,
    TunnelIdOpt,
    TunnelRetriesOpt,
    TunnelTimeoutOpt,
    UrlOpt,
    UsernameOpt,
    VerboseOpt,
    VideoUploadOnPassOpt,
)
from saucefleet.cli.common.output import configure_logging, out
from saucefleet.cli.tui import select_platforms
from saucefleet.core.errors import TunnelOpenError
from saucefleet.core.runs import run_fleet


def run(
    platform: list[str] = PlatformOpt,
    url: str = UrlOpt,
    username: str | None = UsernameOpt,
    access_key: str | None = AccessKeyOpt,
    build: str | None = BuildOpt,
    custom_data: list[str] = CustomDataOpt,
    framework: str = FrameworkOpt,
    idle_timeout: int = IdleTimeoutOpt,
    max_duration: int = MaxDurationOpt,
    name: str = NameOpt,
    public: bool = PublicOpt,
    record_video: bool = RecordVideoOpt,
    record_screenshots: bool = RecordScreenshotsOpt,
    advisor: bool = AdvisorOpt,
    tag: list[str] = TagOpt,
    video_upload_on_pass: bool = VideoUploadOnPassOpt,
    throttle: int = ThrottleOpt,
    job_retries: int = JobRetriesOpt,
    tunnel_retries: int = TunnelRetriesOpt,
    status_interval: float = StatusIntervalOpt,
    queue_timeout: float = QueueTimeoutOpt,
    tunnel_id: str | None = TunnelIdOpt,
    tunnel_timeout: float = TunnelTimeoutOpt,
    tunneled: bool = TunneledOpt,
    select: bool = SelectOpt,
    confirm: bool = ConfirmOpt,
    dry_run: bool = DryRunOpt,
    verbose: bool = VerboseOpt,
):
    """
    Run the test page on every platform and report the combined result.
    """
    configure_logging(verbose)

    try:
        config = build_config(
            tunnel_id=tunnel_id,
            throttle=throttle,
            job_retries=job_retries,
            tunnel_retries=tunnel_retries,
            poll_interval=status_interval,
            queue_timeout=queue_timeout,
            tunnel_timeout=tunnel_timeout,
            tunneled=tunneled,
        )
        platforms = build_platforms(platform)
        options = build_job_options(
            config,
            url=url,
            build=build,
            custom_data=custom_data,
            tags=tag,
            framework=framework,
            idle_timeout=idle_timeout,
            max_duration=max_duration,
            name=name,
            public=public,
            record_screenshots=record_screenshots,
            record_video=record_video,
            sauce_advisor=advisor,
            video_upload_on_pass=video_upload_on_pass,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    if select:
        platforms = select_platforms(platforms)
        if not platforms:
            warn_exit("No platforms selected", code=0)

    out.header("Platforms")
    out.platforms_table(platforms, title=f"{len(platforms)} platform(s)")
    out.kv(
        {
            "url": options.url,
            "tunnel": config.tunnel_id if config.tunneled else "disabled",
            "throttle": config.throttle,
        }
    )

    if dry_run:
        warn_exit("Dry-run enabled: no jobs were started", code=0)

    if confirm and not out.confirm("Start the jobs?"):
        ok_exit("Cancelled")

    appctx = build_run_context(username, access_key, config)

    try:
        with out.status("Running jobs..."):
            result = asyncio.run(
                run_fleet(
                    appctx.credentials,
                    appctx.connection,
                    platforms,
                    options,
                    appctx.config,
                )
            )
    except TunnelOpenError as exc:
        exit_from_exc(exc, message=str(exc), code=EXIT_TUNNEL_FAILED)

    out.results_table(result.outcomes, title="Results")

    if not result.success:
        die(
            f"{len(result.failed)} of {len(result.outcomes)} platform(s) failed",
            code=EXIT_FLEET_FAILED,
        )
    out.success(f"All {len(result.outcomes)} platform(s) passed")


def platforms():
    """
    List the built-in platforms.
    """
    out.platforms_table(DEFAULT_PLATFORMS, title="Default platforms")
