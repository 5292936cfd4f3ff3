from .comprehend import (  # noqa: F401
    BatchSentimentResponse,
    ComprehendSentimentClient,
    ItemError,
    RawSentiment,
    SentimentClient,
    create_comprehend_client,
)
from .errors import ErrorCategory, classify_error, is_retryable_error  # noqa: F401
