# -*- coding: utf-8 -*-
"""Toporobot module for formatting Toporobot .text data."""

from cavesurvey_lib.toporobot.format import ToporobotWriter
from cavesurvey_lib.toporobot.linearize import convert_to_linear_series

__all__ = [
    "ToporobotWriter",
    "convert_to_linear_series",
]
