"""
🗓️ Seasons

A season lasts one quarter and starts on the first day of January, April,
July or October at 12:00 UTC. Winter is named after the year its December
belongs to: "Winter 2019" starts on 2020-01-01.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import IntEnum


class Quarter(IntEnum):
    WINTER = 0
    SPRING = 1
    SUMMER = 2
    AUTUMN = 3

    def __str__(self) -> str:
        return self.name.capitalize()


# Month a season of each quarter starts in
_START_MONTH = {
    Quarter.WINTER: 1,
    Quarter.SPRING: 4,
    Quarter.SUMMER: 7,
    Quarter.AUTUMN: 10,
}


@dataclass(frozen=True)
class YearAndQuarter:
    year: int
    quarter: Quarter

    @classmethod
    def from_start(cls, start: datetime) -> "YearAndQuarter":
        """
        Quarter a season start date belongs to. December belongs to the
        winter of its own year, January and February to the winter of the
        previous year.
        """
        month = start.month
        if month == 12:
            return cls(start.year, Quarter.WINTER)
        if month in (1, 2):
            return cls(start.year - 1, Quarter.WINTER)
        if month in (3, 4, 5):
            return cls(start.year, Quarter.SPRING)
        if month in (6, 7, 8):
            return cls(start.year, Quarter.SUMMER)
        return cls(start.year, Quarter.AUTUMN)

    @classmethod
    def containing(cls, when: datetime) -> "YearAndQuarter":
        """Quarter whose [start, end) interval contains `when`."""
        candidate = cls(when.year - 1, Quarter.AUTUMN)
        while candidate.end() <= when:
            candidate = candidate.next()
        return candidate

    def start(self) -> datetime:
        year = self.year + 1 if self.quarter == Quarter.WINTER else self.year
        return datetime(year, _START_MONTH[self.quarter], 1, 12, 0, 0, tzinfo=timezone.utc)

    def next(self) -> "YearAndQuarter":
        if self.quarter == Quarter.WINTER:
            return YearAndQuarter(self.year + 1, Quarter.SPRING)
        if self.quarter == Quarter.AUTUMN:
            return YearAndQuarter(self.year, Quarter.WINTER)
        return YearAndQuarter(self.year, Quarter(self.quarter + 1))

    def end(self) -> datetime:
        return self.next().start()

    def __str__(self) -> str:
        return f"{self.quarter} {self.year}"
