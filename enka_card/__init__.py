from .assets import AssetResolver
from .card_renderer import CardRenderer, render
from .config import CardConfig
from .loader import load_showcase, showcase_from_dict
from .models import (
    Artifact,
    CardEncodeError,
    CardError,
    Character,
    Constellation,
    ImageRef,
    InvalidCharacterError,
    LocalAsset,
    Profile,
    RolledStat,
    Skill,
    SkillLevel,
    StatEntry,
    Url,
    Weapon,
)
from .persist import save_card

__version__ = "1.0.0"
