"""
Configuration for solver runs, loaded with OmegaConf.

Structured defaults are merged with a YAML file (configs/default.yaml when
present) and then with dotlist overrides such as
'solver.early_stopping=false'.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from omegaconf import DictConfig, OmegaConf

from .cnf import DPLLOptions, SolveMode

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "default.yaml"


@dataclass
class SolverConfig:
    unit_propagation: bool = True
    early_stopping: bool = True
    mode: str = SolveMode.DECISION.value


@dataclass
class ParserConfig:
    strict: bool = True


@dataclass
class GenerateConfig:
    var_min: int = 4
    var_max: int = 10
    count: int = 1000
    seed: Optional[int] = None
    verify: bool = True
    use_pysat: bool = True


@dataclass
class OutputConfig:
    dir: str = "output"


@dataclass
class Config:
    solver: SolverConfig = field(default_factory=SolverConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    generate: GenerateConfig = field(default_factory=GenerateConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def load_config(path: Optional[str] = None, overrides: Optional[List[str]] = None) -> DictConfig:
    """
    Build the run configuration.

    Args:
        path: YAML file to merge over the defaults. None uses
            configs/default.yaml if it exists.
        overrides: Dotlist overrides, e.g. ['solver.mode=counting'].

    Returns:
        A typed DictConfig; unknown keys and wrong types raise OmegaConf errors.
    """
    cfg = OmegaConf.structured(Config)

    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    if config_path.exists():
        logger.debug("Loading config from %s", config_path)
        cfg = OmegaConf.merge(cfg, OmegaConf.load(config_path))
    elif path is not None:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))

    solve_mode(cfg)
    return cfg


def solver_options(cfg: DictConfig) -> DPLLOptions:
    return DPLLOptions(
        unit_propagation=bool(cfg.solver.unit_propagation),
        early_stopping=bool(cfg.solver.early_stopping),
    )


def solve_mode(cfg: DictConfig) -> SolveMode:
    try:
        return SolveMode(cfg.solver.mode)
    except ValueError:
        choices = ", ".join(mode.value for mode in SolveMode)
        raise ValueError(f"solver.mode must be one of {choices}, got {cfg.solver.mode!r}") from None
