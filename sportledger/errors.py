class InvalidAmountError(ValueError):
    """Raised when a price, cost or tax rate cannot be parsed."""


class SettingInUseError(ValueError):
    """Raised when removing a sport, lesson type or location still referenced by a lesson."""

    def __init__(self, kind: str, setting_id: str, lesson_count: int):
        self.kind = kind
        self.setting_id = setting_id
        self.lesson_count = lesson_count
        super().__init__(f"{kind} '{setting_id}' is used by {lesson_count} lesson(s)")
