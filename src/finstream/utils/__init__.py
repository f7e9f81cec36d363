"""Utility functions for finstream."""

from finstream.utils.date_parser import parse_date, get_date_range
from finstream.utils.amount_parser import parse_amount, to_money, round_money, to_rate, to_quantity

__all__ = ["parse_date", "get_date_range", "parse_amount", "to_money", "round_money", "to_rate", "to_quantity"]
