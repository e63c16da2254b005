# -*- coding: utf-8 -*-
"""Survex module for parsing and formatting Survex .svx files."""

from cavesurvey_lib.survex.format import SurvexWriter
from cavesurvey_lib.survex.format import survex_name
from cavesurvey_lib.survex.parser import SurvexParser

__all__ = [
    "SurvexParser",
    "SurvexWriter",
    "survex_name",
]
