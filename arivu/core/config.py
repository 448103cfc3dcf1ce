"""Configuration from environment variables (.env)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _default_config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "arivu"


@dataclass
class Config:
    project_root: Path
    config_dir: Path
    logs_dir: Path
    profiles_file: Path
    adapters_file: Path
    default_profile: str
    max_concurrency: int
    log_level: str

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        config_dir = _default_config_dir()
        return cls(
            project_root=project_root,
            config_dir=config_dir,
            logs_dir=Path(os.getenv("ARIVU_LOGS_DIR", str(config_dir / "logs"))),
            profiles_file=Path(os.getenv("ARIVU_PROFILES_FILE", str(config_dir / "profiles.yaml"))),
            adapters_file=Path(os.getenv("ARIVU_ADAPTERS_FILE", str(config_dir / "adapters.yaml"))),
            default_profile=os.getenv("ARIVU_DEFAULT_PROFILE", "research").strip() or "research",
            max_concurrency=max(1, int(os.getenv("ARIVU_MAX_CONCURRENCY", "8"))),
            log_level=os.getenv("ARIVU_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )

    def validate(self) -> list[str]:
        errors = []
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Unknown log level: {self.log_level}")
        if self.adapters_file.exists() and not self.adapters_file.is_file():
            errors.append(f"Adapters path is not a file: {self.adapters_file}")
        if self.profiles_file.exists() and not self.profiles_file.is_file():
            errors.append(f"Profiles path is not a file: {self.profiles_file}")
        return errors


config = Config.load()
