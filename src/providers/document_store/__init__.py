"""Document store implementations.

    JsonFileDocumentStore -- one JSON file per job opening under JOB_OPENINGS_DIR
"""

from src.providers.document_store.json_file_store import JsonFileDocumentStore

__all__ = ["JsonFileDocumentStore"]
