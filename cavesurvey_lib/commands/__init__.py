# -*- coding: utf-8 -*-
"""Command line actions of the ``cavesurvey`` tool."""
