"""Channel configuration shared by the combiner, stations and CLI."""

import os
import yaml
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .codes import CodeTable

DEFAULT_PORT = 51717


@dataclass
class ChannelConfig:
    """Configuration for one CDMA round."""
    host: str = "localhost"
    port: int = DEFAULT_PORT

    # Seconds; None waits forever
    join_timeout: Optional[float] = 10.0
    recv_timeout: Optional[float] = 10.0

    # 4x4 override of the built-in Walsh table
    walsh_codes: Optional[List[List[int]]] = None
    strict_decode: bool = True

    log_level: str = "INFO"

    def code_table(self) -> CodeTable:
        return CodeTable(self.walsh_codes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_yaml(cls, path: str) -> "ChannelConfig":
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def save(self, path: str):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)
