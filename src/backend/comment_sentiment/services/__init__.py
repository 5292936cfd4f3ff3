"""
Classification, batching and aggregation services behind ``SentimentAnalyzer``.
"""
