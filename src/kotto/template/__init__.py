"""Prompt rendering strategies."""

from kotto.template.base import Template
from kotto.template.naive import Naive

__all__ = ["Naive", "Template"]
