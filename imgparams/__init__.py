"""imgparams - modifier chain builder for imgproxy-style image URLs.

Chain modifiers, then build a signed or unsigned request path:

    pb().resize("fit", 300, 200).quality(80).build(path="/a.png")
"""

from imgparams.builder import (
    BuildOptions,
    ModifierReuseError,
    ParamBuilder,
    Signature,
    pb,
)
from imgparams.cli import main

__version__ = "0.1.0"
__all__ = [
    "BuildOptions",
    "ModifierReuseError",
    "ParamBuilder",
    "Signature",
    "main",
    "pb",
]
