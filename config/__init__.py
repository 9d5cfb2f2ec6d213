"""
Config package exports: search constants and the SearchConfig loader.
"""

from . import constant
from . import settings
from .constant import *
from .settings import *

__all__ = []
__all__ += constant.__all__
__all__ += settings.__all__
