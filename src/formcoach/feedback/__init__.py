from .messages import FeedbackGenerator, FeedbackItem, Severity

__all__ = ['FeedbackGenerator', 'FeedbackItem', 'Severity']
