"""
Dataset directory lookup.

Resolves a symbolic dataset name to the directory on the storage server
and the directory in the archive, so the two trees can be reconciled.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path


class DatasetLookupError(LookupError):
    """Raised when a dataset cannot be resolved to two directory paths."""
    pass


class DatasetPathResolver(ABC):
    """Looks up the storage and archive directories of a dataset."""

    @abstractmethod
    def resolve(self, dataset_name: str) -> tuple[str, str]:
        """
        Resolve a dataset name.

        Args:
            dataset_name: Name of the dataset

        Returns:
            (storage_path, archive_path)

        Raises:
            DatasetLookupError: If the dataset is unknown or a path is empty
        """
        pass


class JsonDatasetPathResolver(DatasetPathResolver):
    """
    Resolver backed by a JSON catalog file.

    The catalog maps dataset names to their directories:

        {
            "QC_Shew_20_01": {
                "storage_path": "/mnt/storage/QC_Shew_20_01",
                "archive_path": "/mnt/archive/QC_Shew_20_01"
            }
        }

    Names are matched case-insensitively.
    """

    STORAGE_KEY = 'storage_path'
    ARCHIVE_KEY = 'archive_path'

    def __init__(self, catalog_path: Path | str):
        self.catalog_path = Path(catalog_path)
        self._catalog: dict[str, dict] | None = None

    @property
    def source_description(self) -> str:
        return f"dataset catalog {self.catalog_path}"

    def resolve(self, dataset_name: str) -> tuple[str, str]:
        if not dataset_name or not dataset_name.strip():
            raise DatasetLookupError("Dataset name is empty")

        entry = self._load_catalog().get(dataset_name.strip().lower())
        if entry is None:
            raise DatasetLookupError(
                f"Dataset '{dataset_name}' not found in {self.source_description}"
            )

        storage_path = str(entry.get(self.STORAGE_KEY) or "")
        archive_path = str(entry.get(self.ARCHIVE_KEY) or "")

        if not storage_path:
            raise DatasetLookupError(
                f"Dataset '{dataset_name}' has an empty Dataset_Folder_Path "
                f"(using {self.source_description})"
            )
        if not archive_path:
            raise DatasetLookupError(
                f"Dataset '{dataset_name}' has an empty Archive_Folder_Path "
                f"(using {self.source_description})"
            )

        logging.debug(f"JsonDatasetPathResolver - {dataset_name}: {storage_path} -> {archive_path}")
        return storage_path, archive_path

    def _load_catalog(self) -> dict[str, dict]:
        """Read and cache the catalog, keyed by lowercase dataset name."""
        if self._catalog is not None:
            return self._catalog

        try:
            with open(self.catalog_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise DatasetLookupError(f"Dataset catalog not found: {self.catalog_path}") from None
        except (OSError, json.JSONDecodeError) as e:
            raise DatasetLookupError(f"Could not read dataset catalog {self.catalog_path}: {e}") from e

        if not isinstance(data, dict):
            raise DatasetLookupError(f"Dataset catalog must be a JSON object: {self.catalog_path}")

        self._catalog = {
            str(name).lower(): entry
            for name, entry in data.items()
            if isinstance(entry, dict)
        }
        return self._catalog
