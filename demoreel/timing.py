"""
Timing metadata produced by the scheduler.

This is the authoritative record of when each section actually started and
ended during a recording. Audio alignment and captioning read it later,
possibly from a different process, so it round-trips through JSON using the
same field names the rest of the toolchain uses.
"""
import json
from pathlib import Path
from dataclasses import dataclass


@dataclass(frozen=True)
class SectionTiming:
    """Actual window of one section on the recording timeline."""
    id: str
    start_ms: int
    end_ms: int
    narration: str = ""

    def __post_init__(self):
        if self.start_ms > self.end_ms:
            raise ValueError(f"section {self.id} ends before it starts "
                             f"({self.start_ms} > {self.end_ms})")

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "startTime": self.start_ms,
            "endTime": self.end_ms,
            "narration": self.narration,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SectionTiming":
        return cls(
            id=data["id"],
            start_ms=int(data["startTime"]),
            end_ms=int(data["endTime"]),
            narration=data.get("narration") or "",
        )


@dataclass(frozen=True)
class TimingMetadata:
    sections: tuple[SectionTiming, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "sections", tuple(self.sections))

    @property
    def total_duration_ms(self) -> int:
        return self.sections[-1].end_ms if self.sections else 0

    def section(self, section_id: str):
        for timing in self.sections:
            if timing.id == section_id:
                return timing
        return None

    def to_dict(self) -> dict:
        return {
            "sections": [s.to_dict() for s in self.sections],
            "totalDuration": self.total_duration_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimingMetadata":
        return cls(sections=tuple(SectionTiming.from_dict(s) for s in data.get("sections", [])))

    def save(self, path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        return path


def load_timing(path) -> TimingMetadata:
    """Load timing metadata written by a previous recording."""
    with open(path) as f:
        return TimingMetadata.from_dict(json.load(f))
