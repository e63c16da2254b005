# -*- coding: utf-8 -*-
"""DXF module for reading survey centrelines from AutoCAD DXF drawings."""

from cavesurvey_lib.dxf.parser import DxfParser

__all__ = [
    "DxfParser",
]
