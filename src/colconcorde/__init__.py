"""ColConcorde - Rapprochement des colonnes d'un CSV avec le schéma d'un jeu de données."""

from colconcorde.config import ColConcordeError, ConfigError, ConfigFileError

__all__ = [
    "__version__",
    "ColConcordeError",
    "ConfigError",
    "ConfigFileError",
]

__version__ = "0.1.0"
