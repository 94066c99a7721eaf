"""Platform specifications for remote browser sessions.

A platform is the (os, browser, version) triple Sauce Labs uses to pick the
virtual machine a job runs on. This module only models and describes
platforms; deciding which platforms to test is left to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass

# Sauce Labs browser identifiers that don't capitalise into their formal name.
BROWSER_NAMES = {
    "googlechrome": "Chrome",
    "iehta": "Internet Explorer",
    "ipad": "iPad",
    "iphone": "iPhone",
}


def capitalize_words(text: str) -> str:
    """Upper-case the first character of each space separated word."""
    return " ".join(word[:1].upper() + word[1:] for word in text.split(" "))


def browser_name(identifier: str) -> str:
    """Return the formal browser name for a Sauce Labs browser identifier."""
    return BROWSER_NAMES.get(identifier) or capitalize_words(identifier)


@dataclass(frozen=True)
class PlatformSpec:
    """
    Represents one platform a job is executed on.

    Attributes:
        os: Operating system label, e.g. "Windows 8.1".
        browser: Sauce Labs browser identifier, e.g. "googlechrome".
        version: Browser version, e.g. "34".
    """

    os: str
    browser: str
    version: str

    @classmethod
    def parse(cls, value: str) -> PlatformSpec:
        """
        Parse a platform from its `os,browser,version` text form.

        Raises:
            ValueError: If the value doesn't contain exactly three
                        non-empty comma separated parts.
        """
        parts = [part.strip() for part in value.split(",")]
        if len(parts) != 3 or not all(parts):
            raise ValueError(
                f"Invalid platform '{value}' (expected os,browser,version)"
            )
        return cls(*parts)

    @property
    def description(self) -> str:
        """Human readable form, e.g. `Chrome 34 on Windows 8.1`."""
        return (
            f"{browser_name(self.browser)} {self.version} "
            f"on {capitalize_words(self.os)}"
        )

    def as_wire(self) -> list[str]:
        """Return the `[os, browser, version]` list used in job payloads."""
        return [self.os, self.browser, self.version]

    def __str__(self) -> str:
        return self.description
