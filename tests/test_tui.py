from saucefleet.cli.tui import _MAX_DESCRIPTION_WIDTH, _platform_choice_title, _truncate
from saucefleet.core.platforms import PlatformSpec


def test_platform_choice_title_aligns_the_platform_column():
    first = _platform_choice_title(PlatformSpec("Windows 8.1", "googlechrome", "34"), width=30)
    second = _platform_choice_title(PlatformSpec("OS X 10.9", "ipad", "7.1"), width=30)

    assert first.startswith("Chrome 34 on Windows 8.1")
    assert second.startswith("iPad 7.1 on OS X 10.9")
    assert first.index("(") == second.index("(")
    assert first.endswith("(Windows 8.1, googlechrome, 34)")


def test_platform_choice_title_truncates_long_descriptions():
    platform = PlatformSpec("x" * (_MAX_DESCRIPTION_WIDTH + 10), "firefox", "28")
    rendered = _platform_choice_title(platform, width=_MAX_DESCRIPTION_WIDTH)

    assert "..." in rendered
    assert rendered.endswith("firefox, 28)")
    assert len(_truncate(platform.description, _MAX_DESCRIPTION_WIDTH)) == _MAX_DESCRIPTION_WIDTH
