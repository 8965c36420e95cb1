"""Pricing models."""

from liborkit.models.black import OptionType, black_formula, black_implied_std_dev

__all__ = ["OptionType", "black_formula", "black_implied_std_dev"]
