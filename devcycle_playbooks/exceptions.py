"""
Error types raised by the playbook registry, renderer, server and client
"""

from typing import List, Optional


class PlaybookError(Exception):
    """Base error for the playbook service"""

    code = "PLAYBOOK_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        if code:
            self.code = code

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class PlaybookNotFoundError(PlaybookError):
    code = "PLAYBOOK_NOT_FOUND"

    def __init__(self, playbook_id: str):
        super().__init__(f"Playbook not found: {playbook_id}")
        self.playbook_id = playbook_id


class DuplicatePlaybookError(PlaybookError):
    code = "DUPLICATE_PLAYBOOK"

    def __init__(self, playbook_id: str):
        super().__init__(f"Playbook already registered: {playbook_id}")
        self.playbook_id = playbook_id


class PlaybookParameterError(PlaybookError):
    """Raised when render parameters are unknown or missing"""

    code = "INVALID_PARAMETERS"

    def __init__(self, message: str, missing: Optional[List[str]] = None,
                 unknown: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []
        self.unknown = unknown or []


class PlaybookRenderError(PlaybookError):
    code = "RENDER_FAILED"


class PlaybookConfigError(PlaybookError):
    code = "CONFIG_ERROR"


class PlaybookClientError(PlaybookError):
    """Raised by PlaybookClient for failed requests"""

    code = "CLIENT_ERROR"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
