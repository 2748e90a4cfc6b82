"""
Built-in DevCycle playbooks
"""

from typing import List

from ..registry.models import Playbook
from .flag_cleanup import feature_cleanup_playbook
from .react_sdk import react_sdk_playbook
from .sdk_install import sdk_install_playbook


def builtin_playbooks() -> List[Playbook]:
    """Fresh instances of every built-in playbook"""
    return [
        react_sdk_playbook(),
        sdk_install_playbook(),
        feature_cleanup_playbook(),
    ]


__all__ = ["builtin_playbooks", "feature_cleanup_playbook", "react_sdk_playbook", "sdk_install_playbook"]
