from src.generation.exceptions import GenerationError
from src.generation.protocol import TextGenerator
from src.generation.retry import RetryingGenerator, RetryPolicy, is_transient_error
from src.generation.types import GenerationRequest

__all__ = [
    "GenerationError",
    "GenerationRequest",
    "RetryPolicy",
    "RetryingGenerator",
    "TextGenerator",
    "is_transient_error",
]
