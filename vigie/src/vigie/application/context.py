"""
Watch context shared by the tracker and its strategies.
"""

from dataclasses import dataclass, field
from typing import Optional

from shared.reporter import SystemReporter

from vigie.config.settings import VigieConfig, get_settings
from vigie.domain.interfaces import IBlockSource


@dataclass
class WatchContext:
    """
    Collaborators of a confirmation watch.

    Attributes:
        block_source: Block lookup and newHeads subscriptions
        config: Threshold, polling interval and fallback behaviour
        reporter: Optional reporter for diagnostics
    """

    block_source: IBlockSource
    config: VigieConfig = field(default_factory=get_settings)
    reporter: Optional[SystemReporter] = None
