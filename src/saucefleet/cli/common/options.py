"""Common CLI options for the CLI."""

import typer

from saucefleet.core import config as defaults

UsernameOpt = typer.Option(
    None,
    "--username",
    "-u",
    envvar="SAUCE_USERNAME",
    help="Sauce Labs username",
)

AccessKeyOpt = typer.Option(
    None,
    "--access-key",
    "-k",
    envvar="SAUCE_ACCESS_KEY",
    help="Sauce Labs access key",
    show_default=False,
)

UrlOpt = typer.Option(
    "http://localhost:9001/test/index.html",
    "--url",
    help="Test runner URL the remote browsers load",
)

BuildOpt = typer.Option(
    None,
    "--build",
    help="Build label (defaults to the first 10 chars of TRAVIS_COMMIT)",
)

CustomDataOpt = typer.Option(
    [],
    "--custom-data",
    help="Custom job data (key=value). This is reusable.",
    show_default=False,
)

FrameworkOpt = typer.Option("qunit", "--framework", help="Test framework name")

IdleTimeoutOpt = typer.Option(180, "--idle-timeout", help="Session idle timeout (s)")

MaxDurationOpt = typer.Option(360, "--max-duration", help="Session max duration (s)")

NameOpt = typer.Option("unit tests", "--name", help="Job display name")

PublicOpt = typer.Option(True, "--public/--private", help="Job page visibility")

RecordVideoOpt = typer.Option(True, "--record-video/--no-record-video")

RecordScreenshotsOpt = typer.Option(
    False, "--record-screenshots/--no-record-screenshots"
)

AdvisorOpt = typer.Option(True, "--advisor/--no-advisor", help="Enable Sauce advisor")

TagOpt = typer.Option(
    [],
    "--tag",
    help="Job tag. This is reusable.",
    show_default=False,
)

VideoUploadOnPassOpt = typer.Option(
    False, "--video-upload-on-pass/--no-video-upload-on-pass"
)

ThrottleOpt = typer.Option(
    defaults.DEFAULT_THROTTLE,
    "--throttle",
    "-n",
    help="Maximum number of jobs running at once",
)

JobRetriesOpt = typer.Option(
    defaults.DEFAULT_JOB_RETRIES, "--job-retries", help="Restarts allowed per job"
)

TunnelRetriesOpt = typer.Option(
    defaults.DEFAULT_TUNNEL_RETRIES,
    "--tunnel-retries",
    help="Restarts allowed for the tunnel",
)

StatusIntervalOpt = typer.Option(
    defaults.DEFAULT_POLL_INTERVAL,
    "--status-interval",
    help="Seconds between job status checks",
)

QueueTimeoutOpt = typer.Option(
    defaults.DEFAULT_QUEUE_TIMEOUT,
    "--queue-timeout",
    help="Seconds before a job that never started is treated as expired",
)

TunnelIdOpt = typer.Option(
    None,
    "--tunnel-id",
    help="Tunnel identifier (defaults to tunnel_<TRAVIS_JOB_NUMBER>)",
)

TunnelTimeoutOpt = typer.Option(
    defaults.DEFAULT_TUNNEL_TIMEOUT,
    "--tunnel-timeout",
    help="Seconds to wait for the tunnel to come up",
)

TunneledOpt = typer.Option(
    True,
    "--tunneled/--no-tunnel",
    help="Route jobs through a Sauce Connect tunnel",
)

PlatformOpt = typer.Option(
    [],
    "--platform",
    "-P",
    help="Platform as os,browser,version. This is reusable. Defaults to the built-in list.",
    show_default=False,
)

SelectOpt = typer.Option(
    False,
    "--select",
    help="Pick platforms interactively",
)

ConfirmOpt = typer.Option(
    False,
    "--confirm/--no-confirm",
    help="Ask for confirmation before starting jobs",
)

DryRunOpt = typer.Option(
    False,
    "--dry-run",
    help="Show which platforms would run, but don't start anything",
)

VerboseOpt = typer.Option(False, "--verbose", "-v", help="Show debug logging")
