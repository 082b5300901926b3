from proppool import db  # noqa: F401 - imported for model imports

from .captain_action import CaptainAction
from .pick import Pick
from .player import Player
from .pool import Pool
from .prop import Prop

__all__ = [
    "Pool",
    "Prop",
    "Player",
    "Pick",
    "CaptainAction",
]
