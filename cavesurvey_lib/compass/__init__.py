# -*- coding: utf-8 -*-
"""Compass module for parsing Compass .dat survey files."""

from cavesurvey_lib.compass.parser import CompassParser

__all__ = [
    "CompassParser",
]
