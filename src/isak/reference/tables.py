"""
Static reference data for ISAK anthropometry.

Technical Error of Measurement (%ETM) per field and population reference
values (mean, standard deviation) used for Z-scores. Tables are immutable and
injected wherever they are needed, so tests and sites can supply their own
reference populations.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class Reference:
    mean: float
    sd: float


# Returned for unknown fields. Means "no data available", not a statistic.
NO_REFERENCE = Reference(mean=0.0, sd=1.0)
NO_ETM = 0.0

_ETM_VALUES: dict[str, float] = {
    "weight": 0.05,
    "height": 0.11,
    "seated_height": 0.23,
    "biacromial": 0.39,
    "thorax_transverse": 0.61,
    "thorax_anteroposterior": 0.68,
    "biiliocristal": 0.64,
    "humeral": 0.40,
    "femoral": 0.30,
    "head": 0.16,
    "relaxed_arm": 0.63,
    "flexed_arm": 0.69,
    "forearm": 0.48,
    "thorax_circ": 0.35,
    "waist": 0.54,
    "hip": 0.21,
    "thigh_superior": 0.32,
    "thigh_medial": 0.33,
    "calf": 0.28,
    "triceps": 1.55,
    "subscapular": 1.59,
    "supraspinal": 2.19,
    "abdominal": 1.69,
    "thigh_skinfold": 1.54,
    "calf_skinfold": 1.62,
}

_REFERENCE_VALUES: dict[str, tuple[float, float]] = {
    "weight": (74.6, 9.8),
    "height": (179.5, 7.2),
    "seated_height": (93.5, 3.8),
    "biacromial": (40.8, 2.1),
    "thorax_transverse": (28.5, 1.9),
    "thorax_anteroposterior": (19.3, 1.5),
    "biiliocristal": (30.8, 2.2),
    "humeral": (7.0, 0.4),
    "femoral": (9.9, 0.5),
    "head": (58.2, 1.7),
    "relaxed_arm": (29.5, 2.4),
    "flexed_arm": (31.8, 2.5),
    "forearm": (27.1, 1.5),
    "thorax_circ": (94.2, 6.8),
    "waist": (76.9, 6.4),
    "hip": (100.8, 5.2),
    "thigh_superior": (59.5, 4.1),
    "thigh_medial": (53.2, 3.7),
    "calf": (37.6, 2.2),
    "triceps": (9.8, 4.2),
    "subscapular": (11.2, 4.5),
    "supraspinal": (9.8, 4.2),
    "abdominal": (17.5, 6.8),
    "thigh_skinfold": (14.8, 5.9),
    "calf_skinfold": (11.5, 4.5),
}


@dataclass(frozen=True)
class ReferenceTables:
    etm: Mapping[str, float] = field(default_factory=dict)
    references: Mapping[str, Reference] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "etm", MappingProxyType(dict(self.etm)))
        object.__setattr__(
            self, "references", MappingProxyType(dict(self.references))
        )

    def etm_for(self, field_name: str) -> float:
        return self.etm.get(field_name, NO_ETM)

    def reference_for(self, field_name: str) -> Reference:
        return self.references.get(field_name, NO_REFERENCE)

    def has_etm(self, field_name: str) -> bool:
        return field_name in self.etm

    def has_reference(self, field_name: str) -> bool:
        return field_name in self.references

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> "ReferenceTables":
        """
        Build tables from a plain mapping.

        Expected shape::

            {
                "etm": {"weight": 0.05, ...},
                "references": {"weight": {"mean": 74.6, "sd": 9.8}, ...}
            }

        Raises:
            ValueError: If an entry is malformed or a standard deviation is negative.
        """
        raw_etm = payload.get("etm") or {}
        raw_refs = payload.get("references") or {}
        if not isinstance(raw_etm, Mapping) or not isinstance(raw_refs, Mapping):
            raise ValueError("'etm' and 'references' must be mappings")

        etm: dict[str, float] = {}
        for name, value in raw_etm.items():
            try:
                etm[str(name)] = float(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid ETM value for {name!r}: {value!r}") from exc

        references: dict[str, Reference] = {}
        for name, entry in raw_refs.items():
            if not isinstance(entry, Mapping) or "mean" not in entry or "sd" not in entry:
                raise ValueError(f"Reference for {name!r} needs 'mean' and 'sd'")
            try:
                ref = Reference(mean=float(entry["mean"]), sd=float(entry["sd"]))
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid reference for {name!r}: {entry!r}") from exc
            if ref.sd < 0:
                raise ValueError(f"Standard deviation for {name!r} must be >= 0")
            references[str(name)] = ref

        return cls(etm=etm, references=references)

    @classmethod
    def from_json(cls, path: str | Path) -> "ReferenceTables":
        with Path(path).open("r", encoding="utf-8") as file_obj:
            payload = json.load(file_obj)
        if not isinstance(payload, Mapping):
            raise ValueError(f"Reference tables file {path} must hold a JSON object")
        return cls.from_mapping(payload)


DEFAULT_REFERENCE_TABLES = ReferenceTables(
    etm=_ETM_VALUES,
    references={
        name: Reference(mean=mean, sd=sd)
        for name, (mean, sd) in _REFERENCE_VALUES.items()
    },
)
