"""
Inference engines for person_kit.

Engines are kept in a separate module so pre/post-processing stays lightweight
and can be used without installing inference runtimes.
"""

from __future__ import annotations

from .base import InferenceEngine

__all__ = ["InferenceEngine"]
