import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.app_shell.config import resolve_db_path
from src.app_shell.context import StudyTimeContext
from src.components.study_time import EffectiveStudyTimeService
from src.rules.loader import RULES_PATH_ENV, load_rules
from src.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.rules_path = Path(os.environ.get(RULES_PATH_ENV, str(self.base_dir / "rules.yaml")))


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Context ---
# One context per process so the keyed lock and limit cache are shared
_context_instance: StudyTimeContext | None = None


def get_context(
    settings: Settings = Depends(get_settings),
    rules: Rules = Depends(get_rules),
) -> StudyTimeContext:
    """Get study time context singleton."""
    global _context_instance
    if _context_instance is None:
        db_path = resolve_db_path(rules, settings.base_dir)
        _context_instance = StudyTimeContext.create(db_path, rules)
    return _context_instance


def reset_context() -> None:
    global _context_instance
    _context_instance = None


# --- Component Services ---
def get_study_time_service(
    context: StudyTimeContext = Depends(get_context),
) -> EffectiveStudyTimeService:
    """Get study time component service."""
    return context.study_time_service
