"""
OpenLore client: chat streaming, backend REST resources and writing tools.
"""

from __future__ import annotations

__version__ = "0.1.0"
