"""CLI command implementations for the quarterly divider.

Each command module provides:
- Configuration loading and validation
- Integration with core library functions
"""

from quarterly.commands.scan import load_scan_config

__all__ = [
    "load_scan_config",
]
