import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from prwarden_core.errors import ConfigurationError

DEFAULT_CONFIG: dict = {
    "provider": "openai",  # openai | ollama | anthropic
    "model": None,  # None = the provider's default model
    "llm_base_url": None,
    "repo_provider": "local",  # local | github
    "remote": "origin",
    "store": "sqlite",  # sqlite | memory (memory keeps nothing between runs)
    "store_path": ".prwarden.db",
    "max_chars_per_file": 20000,
    "diff_context_lines": 3,
    "include_file_content": False,
    "exclude": [],  # fnmatch patterns or directory names to skip (e.g. "migrations/", "*.min.js")
    "repositories": {},  # name -> {id, path, overview}
}


@dataclass(frozen=True)
class RepositoryConfig:
    """A repository the service knows how to review."""

    name: str
    repo_id: str
    path: Optional[str] = None
    overview: Optional[str] = None


def load_config(config_path: str = ".prwarden.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prwarden.yml in the current directory
      3. CLI argument overrides
    """
    config = {
        **DEFAULT_CONFIG,
        "exclude": list(DEFAULT_CONFIG["exclude"]),
        "repositories": dict(DEFAULT_CONFIG["repositories"]),
    }

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["openai_api_key"] = os.environ.get("OPENAI_API_KEY")
    config["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")
    if os.environ.get("LLM_BASE_URL"):
        config["llm_base_url"] = os.environ["LLM_BASE_URL"]

    return config


def resolve_repository(config: dict, repo_name: str, require_working_copy: Optional[bool] = None) -> RepositoryConfig:
    """Map a repository name to its platform identifier and working copy.

    The working copy is required when diffs come from a local checkout
    (``repo_provider: local``) unless ``require_working_copy`` says otherwise.
    """
    entry = (config.get("repositories") or {}).get(repo_name)
    if not isinstance(entry, dict) or not entry.get("id"):
        raise ConfigurationError(f"Invalid repository name: {repo_name!r}")

    if require_working_copy is None:
        require_working_copy = config.get("repo_provider", "local") == "local"

    path = entry.get("path")
    if require_working_copy:
        if not path:
            raise ConfigurationError(f"No local working copy configured for repository {repo_name!r}")
        if not Path(path).is_dir():
            raise ConfigurationError(f"Working copy for {repo_name!r} does not exist: {path}")

    return RepositoryConfig(name=repo_name, repo_id=str(entry["id"]), path=path, overview=entry.get("overview"))


def load_overview(repository: RepositoryConfig) -> str:
    """
    Load the project overview document given to the reviewer as background.

    Relative paths resolve against the working copy first, then the cwd.
    Returns an empty string when no overview is configured.
    """
    if not repository.overview:
        return ""

    candidates = [Path(repository.overview)]
    if repository.path and not Path(repository.overview).is_absolute():
        candidates.insert(0, Path(repository.path) / repository.overview)

    for p in candidates:
        if p.exists():
            return p.read_text()

    raise ConfigurationError(f"Overview file not found for {repository.name!r}: {repository.overview}")
