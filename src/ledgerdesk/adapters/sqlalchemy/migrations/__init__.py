"""Alembic migration helpers for the ledger schema."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Final

from alembic import command
from alembic.config import Config

from ledgerdesk.config.storage import get_database_uri

PROJECT_ROOT: Final[Path] = Path(__file__).resolve().parents[5]
PYPROJECT_PATH: Final[Path] = PROJECT_ROOT / "pyproject.toml"
MIGRATIONS_PATH: Final[Path] = Path(__file__).resolve().parent

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def _alembic_section() -> dict[str, str]:
    """Return ``[tool.alembic]`` from pyproject.toml, or nothing for installed copies."""

    try:
        with PYPROJECT_PATH.open("rb") as pyproject_file:
            document = tomllib.load(pyproject_file)
    except FileNotFoundError:
        return {}
    section = document.get("tool", {}).get("alembic", {})
    return {str(key): str(value) for key, value in section.items()}


def _resolve(path_option: str | None, default: Path) -> Path:
    if path_option is None:
        return default
    path = Path(path_option)
    return path if path.is_absolute() else (PROJECT_ROOT / path).resolve()


def build_config() -> Config:
    """Alembic config pointing at this package's revisions."""

    options = _alembic_section()
    config = Config(toml_file=str(PYPROJECT_PATH)) if options else Config()

    script_path = _resolve(options.pop("script_location", None), MIGRATIONS_PATH)
    if not (script_path / "env.py").exists():
        # running from a wheel: the pyproject path no longer matches
        script_path = MIGRATIONS_PATH
    config.set_main_option("script_location", str(script_path))
    config.set_main_option(
        "prepend_sys_path",
        str(_resolve(options.pop("prepend_sys_path", "."), PROJECT_ROOT)),
    )
    for key, value in options.items():
        config.set_main_option(key, value)
    return config


def upgrade_head(*, engine: Engine | None = None, database_uri: str | None = None) -> None:
    """Upgrade the database schema to the latest revision.

    With ``engine`` the upgrade runs on one of its connections, which keeps
    in-memory SQLite databases intact.
    """

    config = build_config()
    if engine is not None:
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")
        return
    config.set_main_option("sqlalchemy.url", database_uri or get_database_uri())
    command.upgrade(config, "head")
