"""IR lifting module for IRLIFT.

Converts a straight-line IR function (one entry block ending in ``ret``)
into an equivalent expression tree:

- IRToAstLifter: the translation engine
- lift_function / lift_source: register arguments, then lift
"""

from irlift.lifting.base import LiftingError
from irlift.lifting.lifter import IRToAstLifter, BSWAP_INTRINSIC
from irlift.lifting.api import register_arguments, lift_function, lift_source

__all__ = [
    "LiftingError",
    "IRToAstLifter",
    "BSWAP_INTRINSIC",
    "register_arguments",
    "lift_function",
    "lift_source",
]
