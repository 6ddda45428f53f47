"""Document ingestion: extraction, chunking, and the background pipeline."""

from rechtspraak.services.ingestion.chunker import TextChunker
from rechtspraak.services.ingestion.ingestion_service import IngestionService
from rechtspraak.services.ingestion.text_extractor import TextExtractor

__all__ = ["IngestionService", "TextChunker", "TextExtractor"]
