"""Job options shared by every session in a fleet.

The options are built once (usually by the CLI) and handed to every job.
Each job turns them into its own create-session payload by adding its single
platform, so the value itself never needs to be copied or mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from saucefleet.core.platforms import PlatformSpec


@dataclass(frozen=True)
class JobOptions:
    """
    Immutable settings sent with every create-session request.

    Attributes:
        url: Test runner page the remote browser loads.
        build: Build label shown in the Sauce Labs dashboard.
        custom_data: Arbitrary key/value data attached to the job.
        framework: Test framework name the result parser expects.
        idle_timeout: Seconds a session may sit idle before being killed.
        max_duration: Maximum session duration in seconds.
        name: Display name of the job.
        public: Whether the job page is publicly visible.
        record_screenshots: Record screenshots of the session.
        record_video: Record a video of the session.
        sauce_advisor: Enable Sauce Labs advisor hints.
        tags: Tags attached to the job.
        tunnel_identifier: Tunnel to route traffic through; None when the
            run isn't tunnelled.
        video_upload_on_pass: Upload the video even if the job passes.
    """

    url: str
    build: str = ""
    custom_data: Mapping[str, Any] = field(default_factory=dict)
    framework: str = "qunit"
    idle_timeout: int = 180
    max_duration: int = 360
    name: str = "unit tests"
    public: bool = True
    record_screenshots: bool = False
    record_video: bool = True
    sauce_advisor: bool = True
    tags: tuple[str, ...] = ()
    tunnel_identifier: str | None = None
    video_upload_on_pass: bool = False

    def payload(self, platform: PlatformSpec) -> dict[str, Any]:
        """Return the create-session JSON body for one platform."""
        body: dict[str, Any] = {
            "build": self.build,
            "custom-data": dict(self.custom_data),
            "framework": self.framework,
            "idle-timeout": self.idle_timeout,
            "max-duration": self.max_duration,
            "name": self.name,
            "public": "public" if self.public else False,
            "platforms": [platform.as_wire()],
            "record-screenshots": self.record_screenshots,
            "record-video": self.record_video,
            "sauce-advisor": self.sauce_advisor,
            "tags": list(self.tags),
            "url": self.url,
            "video-upload-on-pass": self.video_upload_on_pass,
        }
        if self.tunnel_identifier:
            body["tunnel-identifier"] = self.tunnel_identifier
        return body
