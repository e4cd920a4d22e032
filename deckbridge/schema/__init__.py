"""Schema package — the slide/element model and everything that parameterizes it.

- models.py: Slide, Element, TextStyle, Background, BoundingBox
- units.py: EMU <-> canvas pixel <-> output inch conversion
- config.py: ExchangeConfig and DashboardDesign
- loader.py: YAML round-trip for config and slide lists
"""

from .config import DashboardDesign, ExchangeConfig
from .loader import load_config, load_slides, save_config, save_slides
from .models import (
    Alignment,
    Background,
    BoundingBox,
    Element,
    ElementKind,
    Slide,
    TextStyle,
)

__all__ = [
    "Alignment",
    "Background",
    "BoundingBox",
    "DashboardDesign",
    "Element",
    "ElementKind",
    "ExchangeConfig",
    "Slide",
    "TextStyle",
    "load_config",
    "load_slides",
    "save_config",
    "save_slides",
]
