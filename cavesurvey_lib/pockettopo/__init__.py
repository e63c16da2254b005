# -*- coding: utf-8 -*-
"""PocketTopo module for parsing PocketTopo text exports."""

from cavesurvey_lib.pockettopo.parser import PocketTopoParser

__all__ = [
    "PocketTopoParser",
]
