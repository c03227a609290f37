import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.rules.models import Rules

RULES_PATH_ENV = "STUDY_TIME_RULES_PATH"
DEFAULT_RULES_PATH = Path("rules.yaml")


def default_rules_path() -> Path:
    """Rules file location, overridable through STUDY_TIME_RULES_PATH."""
    return Path(os.getenv(RULES_PATH_ENV, str(DEFAULT_RULES_PATH)))


def _strip_code_fences(content: str) -> str:
    # Rules may be kept inside a ```yaml block of a markdown document
    yaml_lines = []
    in_block = False
    found_block = False

    for line in content.splitlines():
        s_line = line.strip()
        if s_line.startswith("```yaml"):
            in_block = True
            found_block = True
            continue
        if in_block and s_line.startswith("```"):
            break
        if in_block:
            yaml_lines.append(line)

    return "\n".join(yaml_lines) if found_block else content


def load_rules(path: Path | None = None) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    Raises ValueError if the YAML or the schema is invalid.
    """
    path = path or default_rules_path()
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found at: {path}")

    with open(path) as f:
        content = f.read()

    try:
        data = yaml.safe_load(_strip_code_fences(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in rules file: {e}") from e

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Rules validation failed:\n{e}") from e
