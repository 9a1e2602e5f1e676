"""
Construction-time configuration for the corner pipeline.

CornerConfig is immutable; every pipeline built from it keeps the same rings,
thresholds and gates for its whole lifetime. Durations may be given either as
integers in the stream's time unit (`time_unit`, microseconds by default) or
as literals such as "50 ms". Plain mappings (e.g., parsed from a JSON or YAML
file by the caller) go through CornerConfig.from_dict(), which checks them
against CONFIG_SCHEMA (JSON Schema Draft 2020-12) before building the config.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from jsonschema import Draft202012Validator

from .arc import ArcSpec
from .errors import ConfigError
from .templates import template_for
from .util.units import TIME_UNITS, duration_in

Duration = Union[int, str]
Position = Tuple[float, float]


@dataclass(frozen=True)
class Smoothing:
    """Track position update rule: direct replacement or an exponential moving average."""
    kind: str = "replace"
    alpha: float = 1.0

    def __post_init__(self):
        if self.kind not in ("replace", "exponential"):
            raise ConfigError(f"unknown smoothing kind '{self.kind}'")
        if not (0.0 < float(self.alpha) <= 1.0):
            raise ConfigError(f"smoothing alpha must be in (0, 1], got {self.alpha}")

    @classmethod
    def replace(cls) -> "Smoothing":
        return cls("replace", 1.0)

    @classmethod
    def exponential(cls, alpha: float) -> "Smoothing":
        return cls("exponential", float(alpha))

    def apply(self, old: Position, new: Position) -> Position:
        if self.kind == "replace":
            return (float(new[0]), float(new[1]))
        a = self.alpha
        return (old[0] + a * (new[0] - old[0]), old[1] + a * (new[1] - old[1]))


_DURATION = {
    "oneOf": [
        {"type": "integer", "minimum": 0},
        {"type": "string", "pattern": r"^\s*[0-9]*\.?[0-9]+\s*(ns|us|ms|s)\s*$"},
    ]
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "arcflow corner pipeline config",
    "type": "object",
    "additionalProperties": False,
    "required": ["width", "height"],
    "properties": {
        "width": {"type": "integer", "minimum": 1},
        "height": {"type": "integer", "minimum": 1},
        "radii": {"type": "array", "minItems": 1, "items": {"type": "integer", "minimum": 1}},
        "angular_thresholds": {"type": "array", "minItems": 1, "items": {"type": "number", "exclusiveMinimum": 0}},
        "min_angles": {"type": "array", "items": {"type": "number", "minimum": 0}},
        "templates": {
            "type": "array",
            "items": {
                "type": "array",
                "items": {"type": "array", "items": {"type": "integer"}, "minItems": 2, "maxItems": 2},
            },
        },
        "staleness_threshold": {"$ref": "#/$defs/duration"},
        "temporal_gate": {"$ref": "#/$defs/duration"},
        "inactivity_timeout": {"$ref": "#/$defs/duration"},
        "spatial_gate": {"type": "number", "minimum": 0},
        "min_registration_distance": {"type": "number", "minimum": 0},
        "smoothing": {
            "oneOf": [
                {"const": "replace"},
                {
                    "type": "object",
                    "additionalProperties": False,
                    "required": ["kind"],
                    "properties": {
                        "kind": {"enum": ["replace", "exponential"]},
                        "alpha": {"type": "number", "exclusiveMinimum": 0, "maximum": 1},
                    },
                },
            ]
        },
        "time_unit": {"enum": list(TIME_UNITS)},
        "border_inset": {"type": ["integer", "null"], "minimum": 0},
        "accept_concave": {"type": "boolean"},
        "polarity_filter": {"type": "boolean"},
        "compute_descriptor": {"type": "boolean"},
        "track_id_start": {"type": "integer", "minimum": 0},
    },
    "$defs": {"duration": _DURATION},
}

_VALIDATOR = Draft202012Validator(CONFIG_SCHEMA)


def _path(err) -> str:
    p = "$"
    for part in err.absolute_path:
        p += f"[{part}]" if isinstance(part, int) else f".{part}"
    return p


def _plain(v: Any) -> Any:
    if isinstance(v, (tuple, list)):
        return [_plain(i) for i in v]
    return v


def validate_config_dict(obj: Mapping[str, Any]) -> List[str]:
    """Schema issues for a plain config mapping, formatted as '<json path>: <message>'."""
    errs = sorted(_VALIDATOR.iter_errors(dict(obj)), key=lambda e: list(e.absolute_path))
    return [f"{_path(e)}: {e.message}" for e in errs]


@dataclass(frozen=True)
class CornerConfig:
    width: int
    height: int
    radii: Tuple[int, ...] = (3, 4)
    # Widest recent-activity arc still accepted per ring (radians)
    angular_thresholds: Tuple[float, ...] = (math.radians(135.0), math.radians(144.0))
    min_angles: Optional[Tuple[float, ...]] = None
    templates: Optional[Tuple[Tuple[Tuple[int, int], ...], ...]] = None
    staleness_threshold: Duration = "50 ms"
    spatial_gate: float = 5.0
    temporal_gate: Duration = "50 ms"
    min_registration_distance: float = 3.0
    inactivity_timeout: Duration = "100 ms"
    smoothing: Smoothing = field(default_factory=Smoothing)
    time_unit: str = "us"
    border_inset: Optional[int] = None
    accept_concave: bool = False
    polarity_filter: bool = False
    compute_descriptor: bool = False
    track_id_start: int = 0

    def __post_init__(self):
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ConfigError("width/height must be > 0")
        if self.time_unit not in TIME_UNITS:
            raise ConfigError(f"unknown time unit '{self.time_unit}'")
        # Freeze sequence-valued options so the config stays hashable
        object.__setattr__(self, "radii", tuple(int(r) for r in self.radii))
        object.__setattr__(self, "angular_thresholds", tuple(float(a) for a in self.angular_thresholds))
        if self.min_angles is not None:
            object.__setattr__(self, "min_angles", tuple(float(a) for a in self.min_angles))
        if self.templates is not None:
            object.__setattr__(self, "templates", tuple(tuple((int(o[0]), int(o[1])) for o in t) for t in self.templates))
        n = len(self.radii)
        if n == 0:
            raise ConfigError("at least one radius is required")
        if len(set(self.radii)) != n:
            raise ConfigError(f"radii must be distinct, got {self.radii}")
        if len(self.angular_thresholds) != n:
            raise ConfigError(f"expected {n} angular thresholds, got {len(self.angular_thresholds)}")
        if self.min_angles is not None and len(self.min_angles) != n:
            raise ConfigError(f"expected {n} min angles, got {len(self.min_angles)}")
        if self.templates is not None and len(self.templates) != n:
            raise ConfigError(f"expected {n} templates, got {len(self.templates)}")
        for name in ("staleness_threshold", "temporal_gate", "inactivity_timeout"):
            try:
                v = duration_in(getattr(self, name), self.time_unit)
            except ValueError as e:
                raise ConfigError(f"{name}: {e}") from e
            if v < 0:
                raise ConfigError(f"{name} must be >= 0")
        if self.inactivity_ticks <= 0:
            raise ConfigError("inactivity_timeout must be > 0")
        if self.spatial_gate < 0 or self.min_registration_distance < 0:
            raise ConfigError("spatial_gate and min_registration_distance must be >= 0")
        if not isinstance(self.smoothing, Smoothing):
            raise ConfigError("smoothing must be a Smoothing instance")
        if int(self.track_id_start) < 0:
            raise ConfigError("track_id_start must be >= 0")
        if self.border_inset is not None and int(self.border_inset) < 0:
            raise ConfigError("border_inset must be >= 0")
        specs = self.arc_specs()  # ring thresholds and explicit templates
        if self.accept_concave and any(s.min_angle <= 0.0 for s in specs):
            raise ConfigError("accept_concave needs min_angles > 0 on every ring")

    @property
    def staleness_ticks(self) -> int:
        return duration_in(self.staleness_threshold, self.time_unit)

    @property
    def temporal_gate_ticks(self) -> int:
        return duration_in(self.temporal_gate, self.time_unit)

    @property
    def inactivity_ticks(self) -> int:
        return duration_in(self.inactivity_timeout, self.time_unit)

    def arc_specs(self) -> Tuple[ArcSpec, ...]:
        mins = self.min_angles
        if mins is None:
            # Inside corners need a lower bound; half the upper one is the Arc* Lmin ratio
            mins = tuple(hi / 2.0 for hi in self.angular_thresholds) if self.accept_concave else (0.0,) * len(self.radii)
        out = []
        for i, (r, hi, lo) in enumerate(zip(self.radii, self.angular_thresholds, mins)):
            offs = self.templates[i] if self.templates is not None else None
            out.append(ArcSpec(template_for(r, offs), hi, lo))
        return tuple(out)

    def as_dict(self) -> Dict[str, Any]:
        """JSON-compatible mapping accepted by from_dict()."""
        d = {f.name: _plain(getattr(self, f.name)) for f in fields(self) if getattr(self, f.name) is not None}
        d["smoothing"] = {"kind": self.smoothing.kind, "alpha": self.smoothing.alpha}
        return d

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "CornerConfig":
        issues = validate_config_dict(obj)
        if issues:
            raise ConfigError("invalid config: " + "; ".join(issues))
        kw = dict(obj)
        sm = kw.pop("smoothing", None)
        if isinstance(sm, str):
            kw["smoothing"] = Smoothing(sm)
        elif isinstance(sm, Mapping):
            kind = sm["kind"]
            alpha = float(sm.get("alpha", 1.0 if kind == "replace" else 0.5))
            kw["smoothing"] = Smoothing(kind, alpha)
        return cls(**kw)


__all__ = ["Smoothing", "CornerConfig", "CONFIG_SCHEMA", "validate_config_dict"]
