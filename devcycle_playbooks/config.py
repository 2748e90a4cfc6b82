"""
Service configuration read from the environment
"""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from .exceptions import PlaybookConfigError

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass
class ServiceConfig:
    """Settings for the playbook server, client and exporter"""
    host: str = "0.0.0.0"
    port: int = 8003
    log_level: str = "INFO"
    extra_dir: Optional[str] = None
    export_dir: str = "docs_export"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    server_url: str = "http://localhost:8003"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        """Build configuration from PLAYBOOKS_* environment variables"""
        env = os.environ if environ is None else environ

        port_value = env.get("PLAYBOOKS_PORT", "8003")
        try:
            port = int(port_value)
        except ValueError:
            raise PlaybookConfigError(f"PLAYBOOKS_PORT must be an integer, got {port_value!r}")
        if not 0 < port < 65536:
            raise PlaybookConfigError(f"PLAYBOOKS_PORT out of range: {port}")

        log_level = env.get("PLAYBOOKS_LOG_LEVEL", "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise PlaybookConfigError(f"Unknown PLAYBOOKS_LOG_LEVEL: {log_level}")

        origins = [
            origin.strip()
            for origin in env.get("PLAYBOOKS_CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        return cls(
            host=env.get("PLAYBOOKS_HOST", "0.0.0.0"),
            port=port,
            log_level=log_level,
            extra_dir=env.get("PLAYBOOKS_EXTRA_DIR") or None,
            export_dir=env.get("PLAYBOOKS_EXPORT_DIR", "docs_export"),
            cors_origins=origins or ["*"],
            server_url=env.get("PLAYBOOKS_SERVER_URL", f"http://localhost:{port}").rstrip("/"),
        )
