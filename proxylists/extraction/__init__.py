"""Categorisation and aggregation of IP2Proxy rows into proxy lists.

Example:
    >>> from proxylists.extraction import ChunkedAggregationPipeline, ResultAssembler, write_document
    >>> lists = ChunkedAggregationPipeline("IP2PROXY-LITE-PX10.BIN").run()
    >>> write_document(ResultAssembler().assemble(lists), "lists.json")
"""

from .assembler import ListData, ProxyListDocument, ResultAssembler
from .categories import BUCKET_NAMES, CATEGORIES, BucketAccumulator, CategoryMatcher, CategoryPattern
from .pipeline import ChunkedAggregationPipeline, ExtractionMetrics, partition
from .serializer import dumps_document, write_document

__all__ = [
    "BUCKET_NAMES",
    "BucketAccumulator",
    "CATEGORIES",
    "CategoryMatcher",
    "CategoryPattern",
    "ChunkedAggregationPipeline",
    "ExtractionMetrics",
    "ListData",
    "ProxyListDocument",
    "ResultAssembler",
    "dumps_document",
    "partition",
    "write_document",
]
