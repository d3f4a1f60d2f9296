"""
Demo script model.
A script is an ordered list of sections, each carrying narration and the
browser actions to perform while that narration plays.
"""
import json
import yaml
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field
from enum import Enum


class ActionType(str, Enum):
    """Interactions the executor knows how to perform."""
    CLICK = "click"
    SCROLL = "scroll"
    HOVER = "hover"
    TYPE = "type"
    WAIT = "wait"
    NAVIGATE = "navigate"


class HighlightStyle(str, Enum):
    """Overlay effects drawn over a target before its action runs."""
    ARROW = "arrow"           # Pointer aimed at the target
    SPOTLIGHT = "spotlight"   # Dim everything except the target
    BOX = "box"               # Border drawn around the target
    ZOOM = "zoom"             # Ring pulsing around the target
    NONE = "none"


# External script documents use camelCase keys
_ACTION_KEYS = {
    "timing": "timing_offset_ms",
    "timingOffsetMs": "timing_offset_ms",
    "highlightStyle": "highlight_style",
    "highlightDuration": "highlight_duration_ms",
    "highlightDurationMs": "highlight_duration_ms",
    "highlightLabel": "highlight_label",
}

_SCRIPT_KEYS = {
    "targetAudience": "target_audience",
    "totalDuration": "total_duration",
}


def _rename(data: dict, keys: dict) -> dict:
    return {keys.get(k, k): v for k, v in data.items()}


@dataclass(frozen=True)
class Action:
    """A single scripted interaction."""
    type: ActionType
    selector: Optional[str] = None
    value: Optional[str] = None
    timing_offset_ms: int = 0                       # Relative to section start
    highlight_style: HighlightStyle = HighlightStyle.NONE
    highlight_duration_ms: Optional[int] = None
    highlight_label: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, "type", ActionType(self.type))
        if isinstance(self.highlight_style, str):
            object.__setattr__(self, "highlight_style", HighlightStyle(self.highlight_style))
        if self.timing_offset_ms < 0:
            raise ValueError(f"timing offset must be non-negative, got {self.timing_offset_ms}")
        if self.value is not None and not isinstance(self.value, str):
            object.__setattr__(self, "value", str(self.value))

    @property
    def highlighted(self) -> bool:
        return self.highlight_style != HighlightStyle.NONE and bool(self.selector)

    @classmethod
    def from_dict(cls, data: dict) -> "Action":
        return cls(**_rename(data, _ACTION_KEYS))

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "selector": self.selector,
            "value": self.value,
            "timing": self.timing_offset_ms,
            "highlightStyle": self.highlight_style.value,
            "highlightDuration": self.highlight_duration_ms,
            "highlightLabel": self.highlight_label,
        }


@dataclass(frozen=True)
class Section:
    """A named, timed segment of the demo."""
    id: str
    name: str = ""
    narration: str = ""
    duration: float = 0                             # Nominal length in seconds
    actions: tuple[Action, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "actions", tuple(
            Action.from_dict(a) if isinstance(a, dict) else a
            for a in self.actions
        ))
        if self.narration is None:
            object.__setattr__(self, "narration", "")

    @property
    def nominal_duration_ms(self) -> int:
        return int(round(self.duration * 1000))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "narration": self.narration,
            "duration": self.duration,
            "actions": [a.to_dict() for a in self.actions],
        }


@dataclass(frozen=True)
class Script:
    """Complete demo script."""
    sections: tuple[Section, ...]
    title: str = ""
    target_audience: str = ""
    total_duration: float = 0
    versions: dict = field(default_factory=dict)    # name -> ordered section ids

    def __post_init__(self):
        object.__setattr__(self, "sections", tuple(
            Section(**s) if isinstance(s, dict) else s
            for s in self.sections
        ))

    @classmethod
    def from_dict(cls, data: dict) -> "Script":
        return cls(**_rename(data, _SCRIPT_KEYS))

    def section(self, section_id: str) -> Optional[Section]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def for_version(self, name: Optional[str]) -> "Script":
        """
        Return the subset of sections listed under a version.

        Sections keep script order. Unknown or empty versions give back the
        whole script.
        """
        ids = self.versions.get(name) if name else None
        if not ids:
            return self

        wanted = set(ids)
        sections = tuple(s for s in self.sections if s.id in wanted)
        return Script(
            sections=sections,
            title=self.title,
            target_audience=self.target_audience,
            total_duration=sum(s.duration for s in sections),
            versions=self.versions,
        )

    def find_start_url(self) -> Optional[str]:
        """First navigate target in the script, if any."""
        for section in self.sections:
            for action in section.actions:
                if action.type == ActionType.NAVIGATE and action.value:
                    return action.value
        return None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "targetAudience": self.target_audience,
            "totalDuration": self.total_duration,
            "sections": [s.to_dict() for s in self.sections],
            "versions": dict(self.versions),
        }

    def save(self, path) -> Path:
        """Save script to JSON or YAML, chosen by suffix."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            if path.suffix in [".yaml", ".yml"]:
                yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

        return path


def load_script(path) -> Script:
    """Load a demo script from YAML or JSON file."""
    path = Path(path)

    with open(path) as f:
        if path.suffix in [".yaml", ".yml"]:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    return Script.from_dict(data)
