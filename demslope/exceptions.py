# -*- coding: utf-8 -*-
"""
demslope Exception Hierarchy - Domain-specific exceptions for slope runs.

Lets callers (the CLI, batch drivers) catch demslope failures distinctly
from Python built-in exceptions. Every exception subclasses both
``DemSlopeError`` and the matching built-in so existing ``except OSError``
or ``except ValueError`` handlers keep working.

Author
------
Steven Siebert

License
-------
MIT License
Copyright (c) 2024 geoint.org
See LICENSE file for full text.

Created
-------
2026-10-19

Modified
--------
2026-10-19
"""


class DemSlopeError(Exception):
    """Base exception for all demslope errors."""


class ValidationError(DemSlopeError, ValueError):
    """Invalid configuration, arguments, or buffer geometry.

    Raised for blocking factors that do not divide the mosaic, window
    views that would leave their owning buffer, and out-of-range
    physical constants.
    """


class ResourceUnavailableError(DemSlopeError, OSError):
    """An input or output stream could not be opened."""


class AllocationError(DemSlopeError, MemoryError):
    """One of the persistent block buffers could not be allocated."""


class ShortReadError(DemSlopeError, EOFError):
    """The input stream returned fewer cells than a full row-block.

    The mosaic geometry is validated up front, so a short read means
    the input is truncated or its dimensions were misconfigured.
    """


class ProcessorError(DemSlopeError, RuntimeError):
    """A sub-block computation failed inside the worker pool."""
