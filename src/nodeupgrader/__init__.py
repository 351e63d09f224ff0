"""
NodeUpgrader - Test-guarded, one-at-a-time upgrades for Node dependencies
"""

__version__ = "0.1.0"

from .core import NodeUpgrader, UpgraderError

__all__ = ["NodeUpgrader", "UpgraderError"]
