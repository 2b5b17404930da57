"""Build tool adapters used by the artifact builder."""

from .nix import NixToolchain
from .prebuilt import PrebuiltToolchain
from .runner import AdapterError

__all__ = ["AdapterError", "NixToolchain", "PrebuiltToolchain"]
