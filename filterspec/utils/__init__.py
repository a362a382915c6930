"""Utility helpers for filterspec."""

from filterspec.utils import logging

__all__ = ("logging",)
