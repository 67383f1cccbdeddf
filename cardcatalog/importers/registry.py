"""
Lookup of source importers by key.

The registry is built once with every importer and never changes afterwards.
"""

from collections.abc import Iterable
from functools import lru_cache

from cardcatalog.importers.base import SourceImporter
from cardcatalog.importers.dicemasters import DiceMastersImporter
from cardcatalog.importers.fabdb import FabDbImporter
from cardcatalog.importers.guardians import GuardiansImporter
from cardcatalog.importers.lorcana import LorcanaJsonImporter
from cardcatalog.importers.pokemon import PokemonTcgImporter
from cardcatalog.importers.scryfall import ScryfallImporter
from cardcatalog.importers.swccgdb import SwccgdbImporter
from cardcatalog.importers.swu import SwuDbImporter
from cardcatalog.importers.transformers import TransformersImporter


class ImporterRegistry:
    """Case-insensitive map from importer key to importer."""

    def __init__(self, importers: Iterable[SourceImporter]) -> None:
        self._by_key: dict[str, SourceImporter] = {}
        for importer in importers:
            key = importer.key.lower()
            if key in self._by_key:
                raise ValueError(f"Duplicate importer key: {importer.key}")
            self._by_key[key] = importer

    def get(self, key: str) -> SourceImporter:
        """
        Raises:
            KeyError: If no importer is registered under key
        """
        importer = self._by_key.get(key.lower())
        if importer is None:
            raise KeyError(f"Unknown importer '{key}'")
        return importer

    def try_get(self, key: str) -> tuple[SourceImporter | None, bool]:
        importer = self._by_key.get(key.lower())
        return importer, importer is not None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._by_key

    def __len__(self) -> int:
        return len(self._by_key)

    @property
    def keys(self) -> list[str]:
        return sorted(self._by_key)

    @property
    def all(self) -> list[SourceImporter]:
        return [self._by_key[key] for key in self.keys]


@lru_cache
def build_registry() -> ImporterRegistry:
    """The application-wide registry with every bundled importer."""
    return ImporterRegistry(
        [
            DiceMastersImporter(),
            FabDbImporter(),
            GuardiansImporter(),
            LorcanaJsonImporter(),
            PokemonTcgImporter(),
            ScryfallImporter(),
            SwccgdbImporter(),
            SwuDbImporter(),
            TransformersImporter(),
        ]
    )
