from abc import ABC, abstractmethod


class ICodeSequenceRepository(ABC):
    """CodeSequence repository interface - application layer"""

    @abstractmethod
    async def next_value(self, region: str, type_code: str) -> int:
        """
        Atomically increment and return the sequence for (region, type_code).

        Raises DuplicateRecordError if a concurrent writer created the
        sequence row first; callers retry.
        """
        pass
