from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from graphsim.errors import InputFormatError
from graphsim.sigma import check_cor
from graphsim.structure import StructuralVariant


DEFAULT_CONFIG: Dict = {
    "version": 1,
    "n_samples": 100,
    "cor": 0.8,
    "mean": 0.0,
    "sd": 1.0,
    "variant": StructuralVariant.ADJACENCY.value,
    "absolute": False,
    "directed": False,
    "seed": 13,
}

_LEGACY_FLAGS = ("comm", "laplacian", "dist")


@dataclass
class SimulationConfig:
    n_samples: Union[int, float] = 100
    cor: float = 0.8
    mean: Union[float, List[float]] = 0.0
    sd: Union[float, List[float]] = 1.0
    variant: StructuralVariant = StructuralVariant.ADJACENCY
    absolute: bool = False
    directed: bool = False
    seed: Optional[int] = DEFAULT_CONFIG["seed"]
    extra: Dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, cfg: Dict) -> "SimulationConfig":
        """Build a config, mapping legacy ``comm``/``laplacian``/``dist`` flags to a variant."""
        cfg = dict(cfg)
        flags = {name: bool(cfg.pop(name, False)) for name in _LEGACY_FLAGS}
        if any(flags.values()):
            if "variant" in cfg:
                raise InputFormatError("use either 'variant' or the comm/laplacian/dist flags, not both")
            variant = StructuralVariant.from_flags(**flags)
        else:
            variant = StructuralVariant.coerce(cfg.pop("variant", StructuralVariant.ADJACENCY))

        known = {"n_samples", "cor", "mean", "sd", "absolute", "directed", "seed"}
        kwargs = {k: cfg.pop(k) for k in list(cfg) if k in known}
        cfg.pop("version", None)
        config = cls(variant=variant, extra=cfg, **kwargs)
        config.validate()
        return config

    def validate(self) -> None:
        check_cor(self.cor)
        sds = self.sd if isinstance(self.sd, list) else [self.sd]
        try:
            sds = [float(s) for s in sds]
        except (TypeError, ValueError) as exc:
            raise InputFormatError(f"sd must be numeric, got {self.sd!r}") from exc
        if any(s < 0 for s in sds):
            raise InputFormatError(f"sd must be non-negative, got {self.sd}")
        self.variant = StructuralVariant.coerce(self.variant)

    def to_dict(self) -> Dict:
        out = asdict(self)
        out["variant"] = self.variant.value
        extra = out.pop("extra")
        out.update(extra)
        return out


def load_config(path: Union[str, Path]) -> SimulationConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing config file: {p}")
    text = p.read_text(encoding="utf-8")
    try:
        cfg = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(
            f"Config parsing failed for {p}. `graphsim-simulate` expects a JSON file. "
            "Use `graphsim-simulate init-config` to create a starter file."
        ) from exc
    if not isinstance(cfg, dict):
        raise ValueError(f"Config file {p} must contain a JSON object")
    return SimulationConfig.from_dict(cfg)


def write_starter_config(path: Union[str, Path]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(DEFAULT_CONFIG, indent=2), encoding="utf-8")


__all__ = ["DEFAULT_CONFIG", "SimulationConfig", "load_config", "write_starter_config"]
