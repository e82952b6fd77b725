from __future__ import annotations

from datetime import date

from app.core.config import Settings, get_settings
from app.core.exceptions import InvalidRequestError

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
TEACHING_WEEKDAYS = WEEKDAY_NAMES[:6]


def weekday_name(value: date) -> str:
    return WEEKDAY_NAMES[value.weekday()]


class PeriodCalendar:
    """Ordering and lab-span arithmetic over the configured day layout."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.sequence = [item.strip().upper() for item in settings.period_sequence if item.strip()]
        self.teaching = [item.strip().upper() for item in settings.teaching_periods if item.strip()]
        self._position = {period: index for index, period in enumerate(self.sequence)}
        self._teaching_index = {period: index for index, period in enumerate(self.teaching)}
        self._class_label_format = settings.class_label_format

    def is_teaching_period(self, period_id: str) -> bool:
        return period_id in self._teaching_index

    def ensure_teaching_slot(self, on_date: date, period_id: str) -> None:
        weekday = weekday_name(on_date)
        if weekday not in TEACHING_WEEKDAYS:
            raise InvalidRequestError(
                f"No classes are held on {weekday} ({on_date.isoformat()})",
                details={"date": on_date.isoformat(), "weekday": weekday},
            )
        if not self.is_teaching_period(period_id):
            raise InvalidRequestError(
                f"'{period_id}' is not a teaching period",
                details={"period_id": period_id, "teaching_periods": list(self.teaching)},
            )

    def sort_key(self, period_id: str) -> tuple[int, str]:
        # Unknown ids sort after the configured layout, alphabetically.
        return (self._position.get(period_id, len(self.sequence)), period_id)

    def covered_periods(self, anchor_period_id: str, span: int = 1) -> list[str]:
        """Every teaching period occupied by an entry anchored at ``anchor_period_id``."""
        start = self._teaching_index.get(anchor_period_id)
        if start is None or span <= 1:
            return [anchor_period_id]
        return self.teaching[start : start + span]

    def span_fits(self, anchor_period_id: str, span: int) -> bool:
        start = self._teaching_index.get(anchor_period_id)
        if start is None:
            return span <= 1
        return start + span <= len(self.teaching)

    def class_label(self, *, year: int, section: str, semester: int | None = None) -> str:
        return self._class_label_format.format(year=year, section=section, semester=semester or "")
