from core.sequence.allocator import SequenceAllocator

__all__ = ["SequenceAllocator"]
