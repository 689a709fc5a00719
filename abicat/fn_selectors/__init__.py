"""
Module for looking up functions by their 4-byte selector.

Selectors are indexed from the ABIs of fetched contracts.
"""

from abicat.fn_selectors.fn_selector import FnSelector, normalize_selector
from abicat.fn_selectors.repo import FnSelectorsRepo
