"""
fabvote — Gateway Layer.

Sessions, networks and contracts on top of a secure channel.
"""

from .contract import Contract
from .session import Gateway, Network, connect
from .timeouts import DEFAULT_TIMEOUTS, Phase, TimeoutPolicy
