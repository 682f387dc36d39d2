"""
Report-generation adapter contract.

The report is opaque to the engine: whatever mapping the collaborator
returns is stored and handed to the UI unchanged.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Sequence

from context.transmission_log import TransmissionVector
from telemetry.models import EntropyMetric


class ReportGenerator(ABC):
    @abstractmethod
    async def generate_report(
        self,
        history: Sequence[TransmissionVector],
        metrics: Sequence[EntropyMetric],
    ) -> Mapping[str, Any]:
        """
        Produce a post-session analysis.

        Raises:
            TransportError if the collaborator is unreachable.
            DataCorruptionError if its reply cannot be interpreted.
        """
        raise NotImplementedError
