"""Development feasibility engine: P&L summary and monthly cashflow."""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
