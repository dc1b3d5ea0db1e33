from __future__ import annotations


class InvalidStrategyConfig(ValueError):
    """A retention strategy or service was built with unusable settings.

    Raised at construction time; computing a retention decision never raises.
    """

    def __init__(self, setting: str, message: str) -> None:
        super().__init__(f"invalid {setting}: {message}")
        self.setting = setting
