# -*- coding: utf-8 -*-
"""Entry point for ``python -m demslope``."""

import sys

from demslope.cli import main

sys.exit(main())
