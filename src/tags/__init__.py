"""
Tags module for publishing run results to the automation system
"""

from .sink import TagSink, LoggingTagSink, WebhookTagSink, create_tag_sink

__all__ = ['TagSink', 'LoggingTagSink', 'WebhookTagSink', 'create_tag_sink']
