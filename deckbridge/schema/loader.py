"""YAML serialization for the engine config and decoded slide lists.

Lets an import be saved, reviewed or hand-edited, and re-exported later.
"""

from pathlib import Path

import yaml

from .config import ExchangeConfig
from .models import Slide


def save_config(config: ExchangeConfig, path: str | Path) -> None:
    """Serialize an ExchangeConfig to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False,
                  allow_unicode=True, width=120)


def load_config(path: str | Path | None) -> ExchangeConfig:
    """Load an ExchangeConfig from YAML; ``None`` gives the defaults."""
    if path is None:
        return ExchangeConfig()
    with open(Path(path)) as f:
        data = yaml.safe_load(f)
    return ExchangeConfig.from_dict(data)


def save_slides(slides: list[Slide], path: str | Path) -> None:
    """Serialize a slide list to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"slides": [s.to_dict() for s in slides]}
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False,
                  allow_unicode=True, width=120)


def load_slides(path: str | Path) -> list[Slide]:
    """Deserialize a slide list from a YAML file."""
    with open(Path(path)) as f:
        data = yaml.safe_load(f) or {}
    return [Slide.from_dict(s) for s in data.get("slides", [])]
