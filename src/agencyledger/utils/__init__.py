"""Utility functions for agencyledger."""

from agencyledger.utils.date_parser import parse_date
from agencyledger.utils.amount_parser import parse_amount
from agencyledger.utils.money import to_money, money_sum, split_with_remainder

__all__ = ["parse_date", "parse_amount", "to_money", "money_sum", "split_with_remainder"]
