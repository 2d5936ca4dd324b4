"""
Enrichment gateway: sends ROM names to the configured provider in batches.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ParseError, ProviderError, ProviderTimeout
from .models import EnrichmentResult
from .providers import EnrichmentProvider, build_provider
from .shared_config import DEFAULT_BATCH_SIZE
from .utils import chunked

logger = logging.getLogger(__name__)

# Failures that only cost the batch they happened in
RECOVERABLE_ERRORS = (ProviderTimeout, ProviderError, ParseError)


@dataclass
class BatchFailure:
    """A batch that produced no results"""
    index: int
    names: List[str]
    kind: str
    message: str
    status_code: int

    def to_dict(self) -> dict:
        return {
            'batch': self.index,
            'names': list(self.names),
            'kind': self.kind,
            'error': self.message,
        }


@dataclass
class BatchedEnrichment:
    """Results of a batched run, aligned with the input names"""
    names: List[str]
    results: List[Optional[EnrichmentResult]] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> List[EnrichmentResult]:
        return [r for r in self.results if r is not None]

    @property
    def all_failed(self) -> bool:
        return bool(self.names) and len(self.failures) > 0 and not self.succeeded


class EnrichmentGateway:
    """Dispatches enrichment requests to one provider, batch by batch"""

    def __init__(self, provider: EnrichmentProvider, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError('batch_size must be at least 1')
        self.provider = provider
        self.batch_size = batch_size

    @classmethod
    def from_config(cls, config) -> 'EnrichmentGateway':
        return cls(build_provider(config), batch_size=config.batch_size)

    @property
    def source(self) -> str:
        return self.provider.source

    def enrich(self, rom_names: List[str], platform_name: str) -> List[EnrichmentResult]:
        """One provider call for one batch. Errors propagate to the caller."""
        return self.provider.enrich(list(rom_names), platform_name)

    def enrich_in_batches(self, rom_names: List[str], platform_name: str) -> BatchedEnrichment:
        """
        Enrich all names, batch_size at a time, one batch after another.

        Every batch contributes exactly len(batch) slots to results. Slots the
        provider did not fill (a short answer or a failed batch) stay None, so
        a bad batch never shifts the alignment of the batches after it.
        """
        names = list(rom_names)
        outcome = BatchedEnrichment(names=names)

        for index, batch in enumerate(chunked(names, self.batch_size)):
            started = time.time()
            try:
                answered = self.enrich(batch, platform_name)
            except RECOVERABLE_ERRORS as e:
                logger.warning('enrich batch %d failed (%s): %s', index, type(e).__name__, e.message)
                outcome.failures.append(BatchFailure(
                    index=index,
                    names=batch,
                    kind=type(e).__name__,
                    message=e.message,
                    status_code=e.status_code,
                ))
                outcome.results.extend([None] * len(batch))
                continue

            padded: List[Optional[EnrichmentResult]] = list(answered[:len(batch)])
            padded.extend([None] * (len(batch) - len(padded)))
            outcome.results.extend(padded)
            logger.info('enrich batch %d: %d/%d names answered by %s (%.2fs)',
                        index, min(len(answered), len(batch)), len(batch),
                        self.provider.id, time.time() - started)

        return outcome

    @staticmethod
    def failure_status(outcome: BatchedEnrichment) -> int:
        """HTTP status describing a run where every batch failed."""
        if not outcome.failures:
            return 200
        return outcome.failures[-1].status_code
