"""
obras_config -- single public entrypoint for normativa configuration.

Responsibility:
    Provides the ONLY way to obtain the procurement-law parameters that
    govern a valorization through ``get_active_normativa()``.  YAML loading
    is internal build/test tooling and never exposed to callers.

Architecture position:
    Configuration -- sits above ``obras_kernel`` and ``obras_engines``.
    The engines never import from ``obras_config``; callers pass the
    resolved ``NormativaDef`` (or a policy built from it) into them.

Failure modes:
    - ``FileNotFoundError`` -- the normativa file does not exist.
    - ``NormativaInvalidaError`` -- a definition breaks statutory limits.
    - ``NormativaNoEncontradaError`` -- no normativa in force on the date.

Audit relevance:
    Every successful ``get_active_normativa()`` call emits an
    ``OBRAS_CONFIG_TRACE`` log entry with the normativa code, set version
    and checksum, tying each valorization to the law that governed it.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from obras_config.loader import load_normativa_set
from obras_config.schema import NormativaDef, NormativaSet
from obras_kernel.exceptions import NormativaNoEncontradaError
from obras_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
_NORMATIVAS_FILE = "normativas.yaml"

__all__ = ["NormativaDef", "NormativaSet", "get_active_normativa"]


def get_active_normativa(
    as_of_date: date,
    config_dir: Path | None = None,
) -> NormativaDef:
    """The ONLY public configuration entrypoint.

    Args:
        as_of_date: Contract signature date (or any date whose governing
            law is wanted).
        config_dir: Override path to the configuration sets directory.
            Defaults to obras_config/sets/.

    Returns:
        The NormativaDef in force on ``as_of_date``.

    Raises:
        FileNotFoundError: If the normativa file is missing.
        NormativaInvalidaError: If the file fails validation.
        NormativaNoEncontradaError: If no normativa covers the date.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    normativa_set = load_normativa_set(sets_dir / _NORMATIVAS_FILE)

    for normativa in normativa_set.normativas:
        if normativa.vigente_en(as_of_date):
            _logger.info(
                "OBRAS_CONFIG_TRACE",
                extra={
                    "trace_type": "OBRAS_CONFIG_TRACE",
                    "normativa": normativa.codigo,
                    "config_set_version": normativa_set.version,
                    "checksum": normativa_set.checksum,
                    "as_of_date": as_of_date.isoformat(),
                },
            )
            return normativa

    raise NormativaNoEncontradaError(as_of_date.isoformat())
