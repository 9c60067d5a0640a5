"""
AI Prediction Service

Prediction orchestration core: model catalog, A/B routing, prediction
caching, pluggable ML providers with mock fallback, and performance
monitoring.
"""

__version__ = "1.0.0"
__author__ = "AI Platform Team"
